"""
Use Case: Upload Document

Resolve o emissor pela política, envia o artefato (ou o conteúdo do QR)
e normaliza a resposta bifurcada do backend:

  - issue_vc = "yes" → pendente de emissão (mapped_data, sem doc_id)
  - caso contrário   → registro finalizado com doc_id

Sem retry: qualquer falha encerra a tentativa.
"""

import logging
import time
from dataclasses import dataclass, field

from proof_capture.core.entities.artifact import CapturedArtifact
from proof_capture.core.entities.document import (
    DocumentSlot,
    DocumentSubtypeConfig,
    ImportedFrom,
    UploadedDocumentRecord,
)
from proof_capture.core.errors import (
    ConfigMissingError,
    NetworkError,
    ValidationError,
)
from proof_capture.core.interfaces.document_api import IConfigurationProvider, IDocumentApi
from proof_capture.core.use_cases.validate_file import CODE_SIZE

logger = logging.getLogger(__name__)


@dataclass
class UploadOutcome:
    """Resposta normalizada de um upload."""
    pending_issuance: bool
    record: UploadedDocumentRecord | None = None
    mapped_data: dict = field(default_factory=dict)
    message: str = ""
    status_code: int | None = None
    authoritative: bool = True          # False para QR: refazer a lista
    latency_ms: float = 0.0
    raw: dict = field(default_factory=dict)


def parse_upload_response(body: dict, authoritative: bool = True) -> UploadOutcome:
    """{statusCode, message, data} → UploadOutcome."""
    body = body or {}
    data = body.get("data")
    if not isinstance(data, dict):
        data = {}

    outcome = UploadOutcome(
        pending_issuance=False,
        message=str(body.get("message") or ""),
        status_code=body.get("statusCode"),
        authoritative=authoritative,
        raw=body,
    )

    if str(data.get("issue_vc", "")).strip().lower() == "yes":
        outcome.pending_issuance = True
        mapped = data.get("mapped_data")
        outcome.mapped_data = mapped if isinstance(mapped, dict) else {}
        return outcome

    if data:
        outcome.record = UploadedDocumentRecord.from_api(data)
    return outcome


class UploadOrchestrator:
    """
    Dependency Injection: API do backend e provedor de políticas
    vêm pelo construtor.
    """

    def __init__(
        self,
        api: IDocumentApi,
        config_provider: IConfigurationProvider | None = None,
        max_file_size_bytes: int | None = None,
    ):
        self._api = api
        self._configs = config_provider
        self._max_file_size_bytes = max_file_size_bytes

    async def resolve_issuer(self, slot: DocumentSlot) -> str | None:
        """Falta de política não bloqueia o upload: segue sem emissor."""
        config = await self._policy(slot)
        return config.issuer if config and config.issuer else None

    def limit_for(self, config: DocumentSubtypeConfig | None) -> int | None:
        """Orçamento do subtipo, senão o global."""
        if config is not None and config.max_file_size_bytes:
            return config.max_file_size_bytes
        return self._max_file_size_bytes

    async def upload_raw(
        self,
        artifact: CapturedArtifact,
        slot: DocumentSlot,
        imported_from: ImportedFrom | str = ImportedFrom.MANUAL_UPLOAD,
    ) -> UploadOutcome:
        config = await self._policy(slot)
        limit = self.limit_for(config)
        if limit is not None and artifact.size_bytes > limit:
            # fail closed: artefato acima do orçamento nunca sai do cliente
            raise ValidationError(
                CODE_SIZE,
                f"File size ({artifact.size_mb:.2f} MB) exceeds the maximum allowed size.",
            )

        issuer = config.issuer if config and config.issuer else None
        fields = {
            "docType": slot.doc_type,
            "docSubtype": slot.doc_subtype,
            "docName": slot.doc_name,
            "importedFrom": _label(imported_from),
        }
        if issuer:
            fields["issuer"] = issuer

        t0 = time.perf_counter()
        body = await self._api.upload_document(
            artifact.data, artifact.origin_name, artifact.mime_type, fields
        )
        outcome = parse_upload_response(body)
        outcome.latency_ms = round((time.perf_counter() - t0) * 1000, 2)

        logger.info(
            "Uploaded %s/%s (%.2f MB) from %s: %s",
            slot.doc_type, slot.doc_subtype, artifact.size_mb, fields["importedFrom"],
            "pending issuance" if outcome.pending_issuance else "finalized",
        )
        return outcome

    async def upload_qr(self, qr_content: str, slot: DocumentSlot) -> UploadOutcome:
        """A resposta não é autoritativa: quem chama deve refazer a lista."""
        qr_content = (qr_content or "").strip()
        if not qr_content:
            raise ValidationError("qr", "QR code content is empty.")

        issuer = await self.resolve_issuer(slot)
        payload = {
            "docType": slot.doc_type,
            "docSubType": slot.doc_subtype,
            "docName": slot.doc_name,
            "importedFrom": ImportedFrom.QR_CODE.value,
            "qrContent": qr_content,
        }
        if issuer:
            payload["issuer"] = issuer

        t0 = time.perf_counter()
        body = await self._api.upload_document_qr(payload)
        outcome = parse_upload_response(body, authoritative=False)
        outcome.latency_ms = round((time.perf_counter() - t0) * 1000, 2)
        logger.info("QR document submitted for %s/%s", slot.doc_type, slot.doc_subtype)
        return outcome

    async def delete_document(self, doc_id: str) -> list[UploadedDocumentRecord]:
        """Exclui e devolve a lista recarregada do servidor."""
        await self._api.delete_document(doc_id)
        logger.info("Deleted document %s", doc_id)
        return await self.refresh_documents()

    async def refresh_documents(self) -> list[UploadedDocumentRecord]:
        """Lista autoritativa; nunca remendada localmente."""
        items = await self._api.list_documents()
        return [UploadedDocumentRecord.from_api(item) for item in items if isinstance(item, dict)]

    # ─── Métodos internos ──────────────────────────────────

    async def _policy(self, slot: DocumentSlot) -> DocumentSubtypeConfig | None:
        if self._configs is None:
            return None
        try:
            return await self._configs.get(slot.doc_type, slot.doc_subtype)
        except ConfigMissingError as e:
            logger.warning("%s; uploading without issuer", e)
        except NetworkError as e:
            logger.warning(
                "Failed to fetch VC configuration for %s/%s: %s; uploading without issuer",
                slot.doc_type, slot.doc_subtype, e,
            )
        return None


def _label(imported_from: ImportedFrom | str) -> str:
    return imported_from.value if isinstance(imported_from, ImportedFrom) else str(imported_from)
