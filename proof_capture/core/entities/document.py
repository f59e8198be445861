"""
Entity: Document

Documentos comprobatórios do cidadão e a política de emissão
de VC configurada por (doc_type, doc_subtype).
Modelo puro, sem dependência de framework ou HTTP.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class VCStatus(str, Enum):
    ABSENT = "absent"
    PENDING = "pending"
    ISSUED = "issued"
    REVOKED = "revoked"
    DELETED = "deleted"

    @classmethod
    def parse(cls, value) -> "VCStatus":
        if not value:
            return cls.ABSENT
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ABSENT


class ImportedFrom(str, Enum):
    MANUAL_UPLOAD = "Manual Upload"
    CAMERA_CAPTURE = "Camera Capture"
    QR_CODE = "QR Code"


@dataclass(frozen=True)
class DocumentSlot:
    """Documento pedido ao usuário (ex: idProof / aadhaar / "Aadhaar Card")."""
    doc_type: str
    doc_subtype: str
    doc_name: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.doc_type, self.doc_subtype)


@dataclass(frozen=True)
class VCField:
    """Campo do credential emitido."""
    type: str
    label: str
    required: bool = False


@dataclass(frozen=True)
class DocumentSubtypeConfig:
    """Política de emissão (somente leitura, cacheada por chave)."""
    doc_type: str
    doc_subtype: str
    name: str = ""
    label: str = ""
    issuer: str | None = None
    issue_vc: bool = False
    accepted_qr_content_kind: str | None = None   # ex: "url", "json"
    max_file_size_bytes: int | None = None        # None = orçamento global
    allowed_mime_types: tuple[str, ...] = ()      # vazio = image/* + application/pdf
    vc_fields: dict[str, VCField] = field(default_factory=dict)
    space_id: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.doc_type, self.doc_subtype)

    def to_slot(self) -> DocumentSlot:
        return DocumentSlot(self.doc_type, self.doc_subtype, self.name or self.label)


@dataclass(frozen=True)
class ValidityWindow:
    """Janela de validade embutida no credential."""
    valid_from: datetime | None = None
    valid_until: datetime | None = None

    def has_passed(self, now: datetime) -> bool:
        return self.valid_until is not None and self.valid_until < now


@dataclass
class UploadedDocumentRecord:
    """Documento já reconhecido pelo backend."""
    doc_type: str
    doc_subtype: str
    doc_name: str = ""
    doc_id: str | None = None              # ausente antes da confirmação
    user_id: str | None = None
    imported_from: str = ""
    uploaded_at: datetime | None = None
    doc_verified: bool = False
    vc_status: VCStatus = VCStatus.ABSENT
    download_url: str | None = None
    doc_datatype: str | None = None
    doc_data: str | dict | None = None
    is_uploaded: bool = True
    validity_window: ValidityWindow | None = None

    @classmethod
    def from_api(cls, data: dict) -> "UploadedDocumentRecord":
        """Constrói o registro a partir do payload snake_case do backend."""
        doc_id = data.get("doc_id")
        return cls(
            doc_type=data.get("doc_type", ""),
            doc_subtype=data.get("doc_subtype", ""),
            doc_name=data.get("doc_name", ""),
            doc_id=str(doc_id) if doc_id is not None else None,
            user_id=data.get("user_id"),
            imported_from=data.get("imported_from", ""),
            uploaded_at=parse_datetime(data.get("uploaded_at")),
            doc_verified=_as_bool(data.get("doc_verified")),
            vc_status=VCStatus.parse(data.get("vc_status")),
            download_url=data.get("download_url"),
            doc_datatype=data.get("doc_datatype"),
            doc_data=data.get("doc_data"),
            is_uploaded=_as_bool(data.get("is_uploaded", True)),
            validity_window=extract_validity_window(data),
        )


def parse_datetime(value) -> datetime | None:
    """ISO-8601 (com ou sem 'Z') → datetime com timezone; None se inválido."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_validity_window(data: dict) -> ValidityWindow | None:
    """
    Procura a validade no registro e no credential embutido (doc_data).

    Ordem: campos explícitos do registro, depois validUntil/expirationDate
    do VC (W3C v2 e v1).
    """
    valid_until = parse_datetime(data.get("valid_until") or data.get("expiry_date"))
    valid_from = parse_datetime(data.get("valid_from"))

    credential = data.get("doc_data")
    if isinstance(credential, str):
        try:
            credential = json.loads(credential)
        except ValueError:
            credential = None
    if isinstance(credential, dict):
        if valid_until is None:
            valid_until = parse_datetime(
                credential.get("validUntil") or credential.get("expirationDate")
            )
        if valid_from is None:
            valid_from = parse_datetime(
                credential.get("validFrom") or credential.get("issuanceDate")
            )

    if valid_until is None and valid_from is None:
        return None
    return ValidityWindow(valid_from=valid_from, valid_until=valid_until)


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)
