from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer

from paperless.client.api import ApiClient, ClientError, SessionExpired
from paperless.client.auth import AuthContext, SessionStore
from paperless.client.routes import resolve
from paperless.client.settings import ClientSettings
from paperless.client.views import (
    DashboardView,
    DocumentView,
    DocumentsView,
    FormError,
    UploadForm,
    UploadView,
    UsersView,
)

app = typer.Typer(no_args_is_help=True, add_completion=False, help="Paperless document management client.")


@app.callback()
def main(
    ctx: typer.Context,
    api_url: Optional[str] = typer.Option(None, "--api-url", help="API base URL (default: PAPERLESS_API_URL)"),
    session_file: Optional[Path] = typer.Option(None, "--session-file", help="Where the login session is kept"),
):
    settings = ClientSettings()
    context = AuthContext(SessionStore(session_file or settings.session_file)).init()
    api = ApiClient(context, base_url=api_url or settings.api_url, timeout=settings.timeout)
    ctx.obj = api
    ctx.call_on_close(api.close)


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(1)


@contextmanager
def _errors():
    try:
        yield
    except SessionExpired as exc:
        _fail(f"{exc} Run `paperless login`.")
    except (ClientError, FormError) as exc:
        _fail(str(exc))


def _open(ctx: typer.Context, route: str) -> ApiClient:
    """Apply the client route guard before showing ``route``."""
    api: ApiClient = ctx.obj
    target = resolve(route, api.context)
    if target == "login":
        _fail("Please log in first: paperless login")
    if target != route:
        typer.echo(f"The {route} page is not available for your role; showing the dashboard.", err=True)
        with _errors():
            typer.echo(DashboardView(api).load().render())
        raise typer.Exit(0)
    return api


# auth

@app.command()
def register(
    ctx: typer.Context,
    username: str = typer.Option(..., prompt=True),
    email: str = typer.Option(..., prompt=True),
    department: str = typer.Option(..., prompt=True),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create an account and sign in."""
    api: ApiClient = ctx.obj
    with _errors():
        user = api.register(username, email, password, department)
    typer.echo(f"Registered and signed in as {user['username']}.")


@app.command()
def login(
    ctx: typer.Context,
    email: str = typer.Option(..., prompt=True),
    password: str = typer.Option(..., prompt=True, hide_input=True),
):
    api: ApiClient = ctx.obj
    with _errors():
        user = api.login(email, password)
    typer.echo(f"Signed in as {user['username']} ({user['role']}).")


@app.command()
def logout(ctx: typer.Context):
    api: ApiClient = ctx.obj
    api.logout()
    typer.echo("Signed out.")


@app.command()
def whoami(ctx: typer.Context):
    """Refresh and show the signed-in user."""
    api = _open(ctx, "dashboard")
    with _errors():
        user = api.refresh_user()
    typer.echo(f"{user['username']} <{user['email']}> - {user['role']}, {user['department']}")


# views

@app.command()
def dashboard(ctx: typer.Context):
    api = _open(ctx, "dashboard")
    with _errors():
        typer.echo(DashboardView(api).load().render())


@app.command()
def documents(
    ctx: typer.Context,
    search: str = typer.Option("", "--search", "-s", help="Filter by title"),
    category: str = typer.Option("all", "--category", "-c", help="invoice, receipt, contract, other or all"),
    user_id: Optional[int] = typer.Option(None, "--user-id", help="Owner to list (boss only)"),
):
    api = _open(ctx, "documents")
    with _errors():
        typer.echo(DocumentsView(api, search=search, category=category, user_id=user_id).load().render())


@app.command()
def show(ctx: typer.Context, doc_id: int):
    api = _open(ctx, "document")
    with _errors():
        typer.echo(DocumentView(api, doc_id).load().render())


@app.command()
def upload(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    title: str = typer.Option("", help="Defaults to the file name"),
    category: str = typer.Option("other"),
    tags: str = typer.Option("", help="Comma separated"),
):
    api = _open(ctx, "upload")
    form = UploadForm(title=title, category=category, tags=tags).select_file(path)
    view = UploadView(api, form)
    with _errors():
        view.submit()
    typer.echo(view.render())


@app.command()
def edit(
    ctx: typer.Context,
    doc_id: int,
    title: Optional[str] = typer.Option(None),
    category: Optional[str] = typer.Option(None),
    tags: Optional[str] = typer.Option(None, help="Comma separated; replaces existing tags"),
):
    api = _open(ctx, "document")
    with _errors():
        typer.echo(DocumentView(api, doc_id).edit(title=title, category=category, tags=tags).render())


@app.command()
def delete(ctx: typer.Context, doc_id: int, yes: bool = typer.Option(False, "--yes", "-y")):
    api = _open(ctx, "document")
    if not yes:
        typer.confirm("Are you sure you want to delete this document?", abort=True)
    with _errors():
        typer.echo(DocumentView(api, doc_id).delete())


@app.command()
def download(ctx: typer.Context, doc_id: int, dest: Path = typer.Option(Path("."), file_okay=False)):
    api = _open(ctx, "document")
    with _errors():
        target = api.download_document(doc_id, dest)
    typer.echo(f"Saved {target}")


@app.command()
def approve(ctx: typer.Context, doc_id: int, comments: str = typer.Option("", "--comments", "-m")):
    api = _open(ctx, "document")
    with _errors():
        typer.echo(DocumentView(api, doc_id).approve("approved", comments).render())


@app.command()
def reject(ctx: typer.Context, doc_id: int, comments: str = typer.Option("", "--comments", "-m")):
    api = _open(ctx, "document")
    with _errors():
        typer.echo(DocumentView(api, doc_id).approve("rejected", comments).render())


@app.command(name="print")
def print_document(ctx: typer.Context, doc_id: int):
    api = _open(ctx, "document")
    with _errors():
        url = DocumentView(api, doc_id).print()
    typer.echo(f"Document printed successfully: {url}")


@app.command()
def users(
    ctx: typer.Context,
    search: str = typer.Option("", "--search", "-s"),
    department: str = typer.Option("all", "--department", "-d"),
):
    api = _open(ctx, "users")
    with _errors():
        typer.echo(UsersView(api, search=search, department=department).load().render())


@app.command()
def health(ctx: typer.Context):
    api: ApiClient = ctx.obj
    with _errors():
        data = api.health()
    typer.echo(f"{data['status']} (uptime {data['uptime']}s, {data.get('environment', '-')})")


if __name__ == "__main__":
    app()
