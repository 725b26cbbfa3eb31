from dataclasses import dataclass, field
from pathlib import Path

from paperless.client.api import ApiClient

CATEGORIES = ("invoice", "receipt", "contract", "other")


class FormError(ValueError):
    pass


def format_file_size(size: int | None) -> str:
    if not size:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value, i = float(size), 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"


def _date(value: str | None) -> str:
    return value[:10] if value else "-"


@dataclass
class DashboardStats:
    total_documents: int
    total_size: int
    recent: list[dict]


def dashboard_stats(documents: list[dict], recent_count: int = 5) -> DashboardStats:
    newest_first = sorted(
        documents,
        key=lambda d: (d.get("createdAt") or "", d.get("id") or 0),
        reverse=True,
    )
    return DashboardStats(
        total_documents=len(documents),
        total_size=sum(d.get("fileSize") or 0 for d in documents),
        recent=newest_first[:recent_count],
    )


def filter_documents(documents: list[dict], search: str = "", category: str = "all") -> list[dict]:
    term = search.strip().lower()
    return [
        d for d in documents
        if term in (d.get("title") or "").lower()
        and (category == "all" or d.get("category") == category)
    ]


def filter_users(users: list[dict], search: str = "", department: str = "all") -> list[dict]:
    term = search.strip().lower()
    return [
        u for u in users
        if term in (u.get("username") or "").lower()
        and (department == "all" or u.get("department") == department)
    ]


class DashboardView:
    def __init__(self, api: ApiClient):
        self.api = api
        self.stats: DashboardStats | None = None

    def load(self) -> "DashboardView":
        self.stats = dashboard_stats(self.api.list_documents())
        return self

    def render(self) -> str:
        user = self.api.context.user or {}
        stats = self.stats or dashboard_stats([])
        lines = [
            f"Welcome, {user.get('username', 'guest')} ({user.get('role', '-')})",
            f"Total documents: {stats.total_documents}",
            f"Storage used:    {format_file_size(stats.total_size)}",
            "",
            "Recent documents:",
        ]
        if not stats.recent:
            lines.append("  (none yet - upload one with `paperless upload`)")
        for d in stats.recent:
            lines.append(f"  #{d['id']:<5} {d['title'][:40]:<40} {d['approvalStatus']:<9} {_date(d.get('createdAt'))}")
        return "\n".join(lines)


class DocumentsView:
    def __init__(self, api: ApiClient, search: str = "", category: str = "all", user_id: int | None = None):
        if category != "all" and category not in CATEGORIES:
            raise FormError(f"Unknown category: {category}")
        self.api = api
        self.search = search
        self.category = category
        self.user_id = user_id
        self.documents: list[dict] = []

    def load(self) -> "DocumentsView":
        self.documents = self.api.list_documents(user_id=self.user_id)
        return self

    @property
    def visible(self) -> list[dict]:
        return filter_documents(self.documents, self.search, self.category)

    def render(self) -> str:
        docs = self.visible
        if not docs:
            return "No documents found."
        header = f"{'ID':<6} {'TITLE':<40} {'CATEGORY':<9} {'STATUS':<9} {'SIZE':>10}  CREATED"
        rows = [
            f"{d['id']:<6} {d['title'][:40]:<40} {d['category']:<9} {d['approvalStatus']:<9} "
            f"{format_file_size(d.get('fileSize')):>10}  {_date(d.get('createdAt'))}"
            for d in docs
        ]
        return "\n".join([header, *rows])


class DocumentView:
    def __init__(self, api: ApiClient, doc_id: int):
        self.api = api
        self.doc_id = doc_id
        self.document: dict | None = None

    def load(self) -> "DocumentView":
        self.document = self.api.get_document(self.doc_id)
        return self

    @property
    def is_owner(self) -> bool:
        user = self.api.context.user or {}
        return self.document is not None and self.document.get("createdBy") == user.get("id")

    @property
    def can_approve(self) -> bool:
        return self.api.context.is_boss and (self.document or {}).get("approvalStatus") != "approved"

    @property
    def can_print(self) -> bool:
        return (self.document or {}).get("approvalStatus") == "approved"

    def approve(self, status: str, comments: str = "") -> "DocumentView":
        self.api.approve_document(self.doc_id, status, comments)
        return self.load()

    def print(self) -> str:
        result = self.api.print_document(self.doc_id)
        self.load()
        return result["url"]

    def edit(self, title: str | None = None, category: str | None = None, tags: str | None = None) -> "DocumentView":
        if category is not None and category not in CATEGORIES:
            raise FormError(f"Unknown category: {category}")
        self.api.update_document(self.doc_id, title=title, category=category, tags=tags)
        return self.load()

    def delete(self) -> str:
        return self.api.delete_document(self.doc_id)

    def render(self) -> str:
        d = self.document or {}
        lines = [
            f"{d.get('title')}  (#{d.get('id')})",
            f"  File:      {d.get('fileName')} ({d.get('fileType')}, {format_file_size(d.get('fileSize'))})",
            f"  Category:  {d.get('category')}",
            f"  Tags:      {', '.join(d.get('tags') or []) or '-'}",
            f"  Uploaded:  {_date(d.get('createdAt'))}",
            f"  Status:    {d.get('approvalStatus')}",
        ]
        if d.get("approvalDate"):
            lines.append(f"  Reviewed:  {_date(d.get('approvalDate'))} by user #{d.get('approvedBy')}")
        if d.get("approvalComments"):
            lines.append(f"  Comments:  {d.get('approvalComments')}")
        lines.append(f"  Printed:   {d.get('printCount', 0)} time(s), last {_date(d.get('lastPrintedAt'))}")

        actions = []
        if self.can_approve:
            actions.append(f"paperless approve {d.get('id')} | paperless reject {d.get('id')}")
        if self.can_print:
            actions.append(f"paperless print {d.get('id')}")
        if self.is_owner:
            actions.append(f"paperless edit {d.get('id')} | paperless delete {d.get('id')}")
        if actions:
            lines += ["", "Actions:", *(f"  {a}" for a in actions)]
        return "\n".join(lines)


@dataclass
class UploadForm:
    path: Path | None = None
    title: str = ""
    category: str = "other"
    tags: str = ""

    def select_file(self, path: str | Path) -> "UploadForm":
        self.path = Path(path)
        if not self.title:
            # "report.final.pdf" -> "report.final"
            self.title = self.path.stem
        return self

    def validate(self) -> None:
        if self.path is None:
            raise FormError("Please select a file to upload")
        if not self.path.is_file():
            raise FormError(f"File not found: {self.path}")
        if self.category not in CATEGORIES:
            raise FormError(f"Unknown category: {self.category}")


class UploadView:
    def __init__(self, api: ApiClient, form: UploadForm | None = None):
        self.api = api
        self.form = form or UploadForm()
        self.document: dict | None = None

    def submit(self) -> dict:
        self.form.validate()
        self.document = self.api.upload_document(
            self.form.path, title=self.form.title, category=self.form.category, tags=self.form.tags
        )
        return self.document

    def render(self) -> str:
        if self.document is None:
            return "Nothing uploaded yet."
        d = self.document
        return f"Document uploaded successfully: #{d['id']} {d['title']} ({d['category']})"


@dataclass
class UsersView:
    api: ApiClient
    search: str = ""
    department: str = "all"
    users: list[dict] = field(default_factory=list)

    def load(self) -> "UsersView":
        self.users = self.api.list_users()
        return self

    @property
    def departments(self) -> list[str]:
        return sorted({u.get("department") for u in self.users if u.get("department")})

    @property
    def visible(self) -> list[dict]:
        return filter_users(self.users, self.search, self.department)

    def render(self) -> str:
        users = self.visible
        if not users:
            return "No users found."
        header = f"{'ID':<6} {'USERNAME':<24} {'EMAIL':<32} {'DEPARTMENT':<16} ROLE"
        rows = [
            f"{u['id']:<6} {u['username']:<24} {u['email']:<32} {u['department']:<16} {u['role']}"
            for u in users
        ]
        return "\n".join([header, *rows])
