
import logging
from datetime import datetime, timezone

from fastapi import UploadFile
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from paperless.auth.policy import permits
from paperless.config import settings
from paperless.errors import Forbidden, NotFound, StorageError, ValidationError
from paperless.models.document import ApprovalStatus, Category, Document
from paperless.models.user import User
from paperless.schemas.document import parse_tags
from paperless.uploads.pipeline import default_title, remove_stored_file, staged_upload

log = logging.getLogger(__name__)

DOCUMENT_NOT_FOUND = "Document not found"

def _parse_category(raw: str | None) -> str:
    if raw is None or not raw.strip():
        return Category.OTHER.value
    try:
        return Category(raw.strip().lower()).value
    except ValueError:
        raise ValidationError(
            "Validation Error",
            details=f"Invalid category: {raw}. Expected one of: {', '.join(c.value for c in Category)}",
        )

def upload_document(
    db: Session,
    user: User,
    upload: UploadFile | None,
    title: str | None = None,
    category: str | None = None,
    tags: str | None = None,
) -> Document:
    category_value = _parse_category(category)
    tag_list = parse_tags(tags)

    with staged_upload(upload) as staged:
        doc = Document(
            title=(title or "").strip() or default_title(staged.original_name),
            file_name=staged.file_name,
            file_type=staged.content_type,
            file_path=str(staged.path),
            file_size=staged.size,
            category=category_value,
            tags=tag_list,
            created_by=user.id,
        )
        try:
            db.add(doc)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            log.error("Document insert failed for %s: %s", staged.file_name, exc)
            raise StorageError(details=str(exc)) from exc

    db.refresh(doc)
    log.info("User %s uploaded document %s", user.id, doc.id)
    return doc

def list_documents(
    db: Session,
    user: User,
    owner_id: int | None = None,
    category: str | None = None,
    status: str | None = None,
) -> list[Document]:
    q = db.query(Document)
    if permits(user, "documents:list_any_owner"):
        if owner_id is not None:
            q = q.filter(Document.created_by == owner_id)
    else:
        q = q.filter(Document.created_by == user.id)

    if category:
        q = q.filter(Document.category == category)
    if status:
        q = q.filter(Document.approval_status == status)

    return q.order_by(Document.created_at.desc(), Document.id.desc()).all()

def get_owned_document(db: Session, user: User, doc_id: int) -> Document:
    doc = db.get(Document, doc_id)
    if not doc or doc.created_by != user.id:
        raise NotFound(DOCUMENT_NOT_FOUND)
    return doc

def get_visible_document(db: Session, user: User, doc_id: int) -> Document:
    """Owner, or anyone the policy lets read across owners."""
    doc = db.get(Document, doc_id)
    if not doc:
        raise NotFound(DOCUMENT_NOT_FOUND)
    if doc.created_by != user.id and not permits(user, "documents:read_any_owner"):
        raise NotFound(DOCUMENT_NOT_FOUND)
    return doc

def get_document_by_file_name(db: Session, user: User, file_name: str) -> Document:
    doc = db.query(Document).filter(Document.file_name == file_name).first()
    if not doc:
        raise NotFound("File not found")
    return get_visible_document(db, user, doc.id)

def update_document(
    db: Session,
    user: User,
    doc_id: int,
    title: str | None = None,
    category: str | None = None,
    tags: list[str] | None = None,
) -> Document:
    doc = get_owned_document(db, user, doc_id)
    if title is not None:
        if not title.strip():
            raise ValidationError("Validation Error", details="Title cannot be blank")
        doc.title = title.strip()
    if category is not None:
        doc.category = _parse_category(category)
    if tags is not None:
        doc.tags = list(tags)
    db.commit()
    db.refresh(doc)
    return doc

def delete_document(db: Session, user: User, doc_id: int) -> None:
    doc = get_owned_document(db, user, doc_id)
    file_path = doc.file_path
    db.delete(doc)
    db.commit()
    if file_path:
        remove_stored_file(file_path)
    log.info("User %s deleted document %s", user.id, doc_id)

def approve_document(db: Session, approver: User, doc_id: int, status: str, comments: str | None = None) -> Document:
    if status not in (ApprovalStatus.APPROVED.value, ApprovalStatus.REJECTED.value):
        raise ValidationError("Validation Error", details=f"Invalid approval status: {status}")

    doc = db.get(Document, doc_id)
    if not doc:
        raise NotFound(DOCUMENT_NOT_FOUND)

    doc.approval_status = status
    doc.approval_comments = comments or ""
    doc.approved_by = approver.id
    doc.approval_date = datetime.now(timezone.utc)
    db.commit()
    db.refresh(doc)
    log.info("Document %s set to %s by user %s", doc_id, status, approver.id)
    return doc

def print_document(db: Session, user: User, doc_id: int) -> tuple[Document, str]:
    doc = get_visible_document(db, user, doc_id)
    if doc.approval_status != ApprovalStatus.APPROVED.value:
        raise Forbidden("Document must be approved before printing")

    db.execute(
        update(Document)
        .where(Document.id == doc.id)
        .values(
            print_count=Document.print_count + 1,
            last_printed_at=datetime.now(timezone.utc),
        )
    )
    db.commit()
    db.refresh(doc)
    return doc, f"{settings.server_url.rstrip('/')}/uploads/{doc.file_name}"
