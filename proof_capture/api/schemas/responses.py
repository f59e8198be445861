"""
Pydantic schemas: Request/Response models para a API.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class DocumentRecordResponse(BaseModel):
    doc_id: str | None = None
    doc_type: str
    doc_subtype: str
    doc_name: str = ""
    imported_from: str = ""
    uploaded_at: datetime | None = None
    doc_verified: bool = False
    vc_status: str = "absent"
    download_url: str | None = None
    valid_until: datetime | None = None


class UploadResponse(BaseModel):
    pending_issuance: bool
    message: str = ""
    status_code: int | None = None
    authoritative: bool = True
    record: DocumentRecordResponse | None = None
    mapped_data: dict = Field(default_factory=dict)
    documents: list[DocumentRecordResponse] = Field(default_factory=list)
    artifact_size_mb: float | None = None
    page_count: int | None = None
    latency_ms: float = 0


class QRUploadRequest(BaseModel):
    doc_type: str
    doc_subtype: str
    doc_name: str
    qr_content: str = Field(min_length=1)


class DocumentStatusResponse(BaseModel):
    doc_type: str
    doc_subtype: str
    doc_name: str = ""
    state: str | None = None
    can_preview: bool
    can_delete: bool
    can_reupload: bool
    icon: str | None = None
    color: str | None = None
    label_key: str


class DeleteResponse(BaseModel):
    deleted: bool
    documents: list[DocumentRecordResponse] = Field(default_factory=list)


class LocaleRequest(BaseModel):
    locale: str = Field(min_length=2)


class ErrorResponse(BaseModel):
    message: str
    messages: list[str] = Field(default_factory=list)
    code: str | None = None
