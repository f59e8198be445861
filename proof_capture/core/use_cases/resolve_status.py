"""
Use Case: Resolve Document Status

Função pura e total: (documentos do usuário, subtipo, política) →
estado de exibição + ações permitidas. Avaliada em ordem estrita:

  1. Sem registro                      → INCOMPLETE
  2. Validade embutida expirada        → EXPIRED (domina qualquer vc_status)
  3. issue_vc = True                   → PENDING_VERIFICATION | REVOKED | DELETED | ISSUED | AVAILABLE
  4. issue_vc = False                  → VERIFIED | AVAILABLE

Toda superfície de apresentação usa este resolver; nenhuma recalcula status.
"""

from datetime import datetime, timezone
from typing import Iterable

from proof_capture.core.entities.display_state import DocumentDisplayState as State
from proof_capture.core.entities.display_state import DocumentStatus
from proof_capture.core.entities.document import (
    DocumentSubtypeConfig,
    UploadedDocumentRecord,
    VCStatus,
)


def find_document(
    user_documents: Iterable[UploadedDocumentRecord],
    wanted_subtype: str,
) -> UploadedDocumentRecord | None:
    """Primeiro registro do subtipo pedido."""
    for record in user_documents:
        if record.doc_subtype == wanted_subtype:
            return record
    return None


def is_expired(record: UploadedDocumentRecord, now: datetime | None = None) -> bool:
    window = record.validity_window
    if window is None:
        return False
    return window.has_passed(now or datetime.now(timezone.utc))


def resolve_document_status(
    user_documents: Iterable[UploadedDocumentRecord],
    wanted_subtype: str,
    subtype_config: DocumentSubtypeConfig | None,
    now: datetime | None = None,
) -> DocumentStatus:
    record = find_document(user_documents, wanted_subtype)

    # ── 1. Nenhum documento ──
    if record is None:
        return DocumentStatus.of(State.INCOMPLETE, preview=False, delete=False, reupload=True)

    # ── 2. Expirado ──
    if is_expired(record, now):
        return DocumentStatus.of(State.EXPIRED, preview=False, delete=False, reupload=True)

    if subtype_config is None:
        raise ValueError(
            f"Issuance policy is required to resolve '{wanted_subtype}'; "
            "use DocumentStatus.provisional() while it loads"
        )

    # ── 3. Subtipo com emissão de VC ──
    if subtype_config.issue_vc:
        if record.vc_status == VCStatus.PENDING:
            return DocumentStatus.of(State.PENDING_VERIFICATION, preview=False, delete=False, reupload=False)
        if record.vc_status == VCStatus.REVOKED:
            return DocumentStatus.of(State.REVOKED, preview=False, delete=False, reupload=True)
        if record.vc_status == VCStatus.DELETED:
            return DocumentStatus.of(State.DELETED, preview=False, delete=False, reupload=True)
        if record.doc_verified:
            return DocumentStatus.of(State.ISSUED, preview=True, delete=True, reupload=True)
        return DocumentStatus.of(State.AVAILABLE, preview=True, delete=True, reupload=True)

    # ── 4. Sem emissão de VC ──
    if record.doc_verified:
        return DocumentStatus.of(State.VERIFIED, preview=True, delete=True, reupload=True)
    return DocumentStatus.of(State.AVAILABLE, preview=True, delete=True, reupload=True)


class DocumentStatusResolver:
    """Wrapper com relógio injetável (útil para testes de expiração)."""

    def __init__(self, clock=None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def resolve(
        self,
        user_documents: Iterable[UploadedDocumentRecord],
        wanted_subtype: str,
        subtype_config: DocumentSubtypeConfig | None,
    ) -> DocumentStatus:
        return resolve_document_status(user_documents, wanted_subtype, subtype_config, now=self._clock())
