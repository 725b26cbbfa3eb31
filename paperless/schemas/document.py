
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from paperless.models.document import Category

def parse_tags(raw: str | list[str] | None) -> list[str]:
    """Split a comma separated tag string (or clean a list), dropping empties."""
    if raw is None:
        return []
    items = raw.split(",") if isinstance(raw, str) else raw
    return [t.strip() for t in items if t and t.strip()]

class DocumentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    category: Category | None = None
    tags: list[str] | str | None = None

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, v):
        return None if v is None else parse_tags(v)

    class Config:
        str_strip_whitespace = True

class ApprovalIn(BaseModel):
    status: Literal["approved", "rejected"]
    comments: str | None = None

class DocumentOut(BaseModel):
    id: int
    title: str
    file_name: str
    file_type: str
    file_path: str
    file_size: int
    category: str
    tags: list[str] = []
    created_by: int
    approval_status: str
    approved_by: int | None = None
    approval_date: datetime | None = None
    approval_comments: str | None = None
    print_count: int = 0
    last_printed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

class DocumentEnvelope(BaseModel):
    document: DocumentOut

class UploadOut(DocumentEnvelope):
    message: str = "Document uploaded successfully"

class DocumentList(BaseModel):
    documents: list[DocumentOut]

class PrintOut(BaseModel):
    message: str
    url: str

class MessageOut(BaseModel):
    message: str
