"""
Use Case: Document Capture Flow

Coordena uma "tela de scan" completa:

  1. Arquivo: valida → (PDF → imagem) → comprime se necessário → valida de novo
  2. Câmera: start → foto → normaliza
  3. QR: scanner single-shot → envio direto do conteúdo
  4. Envio: upload → recarrega a lista autoritativa
  5. Status: lista + políticas (em paralelo) → resolver

Um único dono da câmera por vez: abrir a câmera para o scanner
de QR e vice-versa. close() derruba tudo e respostas que chegam
depois são descartadas.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from proof_capture.core.entities.artifact import MB, CapturedArtifact, SourceMethod
from proof_capture.core.entities.display_state import DocumentStatus
from proof_capture.core.entities.document import (
    DocumentSlot,
    DocumentSubtypeConfig,
    ImportedFrom,
    UploadedDocumentRecord,
)
from proof_capture.core.errors import (
    ActionNotAllowedError,
    ConfigMissingError,
    NetworkError,
    ProofCaptureError,
)
from proof_capture.core.interfaces.document_api import IConfigurationProvider
from proof_capture.core.use_cases.capture_session import CaptureSession
from proof_capture.core.use_cases.convert_document import ConversionOptions, DocumentConverter
from proof_capture.core.use_cases.normalize_image import ImageNormalizer, optimal_compression_options
from proof_capture.core.use_cases.qr_decoder import OnDecode, OnError, QRDecoder
from proof_capture.core.use_cases.resolve_status import DocumentStatusResolver, find_document
from proof_capture.core.use_cases.upload_document import UploadOrchestrator, UploadOutcome
from proof_capture.core.use_cases.validate_file import FileValidator

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class SubmissionResult:
    """Resultado do envio + lista recarregada do servidor."""
    outcome: UploadOutcome
    documents: list[UploadedDocumentRecord] = field(default_factory=list)


class DocumentCaptureFlow:
    """
    Dependency Injection: todos os componentes do pipeline vêm prontos.

    Instância por tela; o cache de políticas é o único estado
    compartilhado entre instâncias.
    """

    def __init__(
        self,
        validator: FileValidator,
        converter: DocumentConverter,
        normalizer: ImageNormalizer,
        capture_session: CaptureSession,
        qr_decoder: QRDecoder,
        orchestrator: UploadOrchestrator,
        config_provider: IConfigurationProvider | None = None,
        resolver: DocumentStatusResolver | None = None,
        conversion_options: ConversionOptions | None = None,
    ):
        self._validator = validator
        self._converter = converter
        self._normalizer = normalizer
        self._session = capture_session
        self._qr = qr_decoder
        self._orchestrator = orchestrator
        self._configs = config_provider
        self._resolver = resolver or DocumentStatusResolver()
        self._conversion_options = conversion_options or ConversionOptions()
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def capture_session(self) -> CaptureSession:
        return self._session

    @property
    def qr_decoder(self) -> QRDecoder:
        return self._qr

    # ── 1. Arquivo ──────────────────────────────────────

    async def prepare_file(
        self,
        name: str,
        mime_type: str,
        data: bytes,
        slot: DocumentSlot | None = None,
    ) -> CapturedArtifact:
        """
        Arquivo escolhido pelo usuário → artefato pronto para upload.

        Raises:
            ValidationError: tipo/tamanho inválido.
            ConversionError: PDF não pôde ser convertido.
            CompressionError: não coube no orçamento.
        """
        artifact = CapturedArtifact(
            data=data, mime_type=mime_type, origin_name=name, source_method=SourceMethod.FILE,
        )
        config = await self._policy(slot) if slot else None

        self._validator.ensure_valid(artifact, config)

        if artifact.is_pdf:
            artifact = await self._converter.convert(artifact, self._conversion_options)
            logger.info(
                "PDF converted: %s (%d pages, %.2f MB)",
                artifact.origin_name, artifact.page_count, artifact.size_mb,
            )

        return await self.normalize(artifact, config)

    async def normalize(
        self,
        artifact: CapturedArtifact,
        config: DocumentSubtypeConfig | None = None,
    ) -> CapturedArtifact:
        """
        Comprime acima do limiar e garante o orçamento (fail closed).

        O limiar (ex: 80% do limite) só decide quando comprimir; o
        resultado precisa caber no limite.
        """
        limit = self._validator.limit_for(config)
        if artifact.is_image and self._normalizer.should_compress(artifact, limit):
            options = optimal_compression_options(artifact.size_bytes, limit / MB)
            artifact = await self._normalizer.compress(artifact, options, force=True)

        self._validator.ensure_valid(artifact, config)
        return artifact

    # ── 2. Câmera ───────────────────────────────────────

    async def start_camera(self) -> None:
        self._qr.stop()
        await self._session.start()

    async def capture_photo(self, slot: DocumentSlot | None = None) -> CapturedArtifact:
        artifact = await self._session.capture_photo()
        config = await self._policy(slot) if slot else None
        try:
            return await self.normalize(artifact, config)
        except ProofCaptureError:
            # foto fora do orçamento é descartada
            self._session.cancel()
            raise

    async def retake(self) -> None:
        self._qr.stop()
        await self._session.retake()

    def cancel_capture(self) -> None:
        self._session.cancel()

    # ── 3. QR ───────────────────────────────────────────

    async def start_qr_scan(self, on_payload: OnDecode, on_error: OnError | None = None) -> None:
        self._session.cancel()
        await self._qr.start(on_payload, on_error)

    def stop_qr_scan(self) -> None:
        self._qr.stop()

    # ── 4. Envio ────────────────────────────────────────

    async def submit_file(
        self,
        artifact: CapturedArtifact,
        slot: DocumentSlot,
        imported_from: ImportedFrom | None = None,
    ) -> SubmissionResult | None:
        """None quando a tela foi fechada durante o envio."""
        if not self._alive:
            return None
        if imported_from is None:
            imported_from = (
                ImportedFrom.CAMERA_CAPTURE
                if artifact.source_method == SourceMethod.CAMERA
                else ImportedFrom.MANUAL_UPLOAD
            )

        outcome = await self._orchestrator.upload_raw(artifact, slot, imported_from)
        return await self._after_mutation(outcome)

    async def submit_qr(self, payload: str, slot: DocumentSlot) -> SubmissionResult | None:
        if not self._alive:
            return None
        outcome = await self._orchestrator.upload_qr(payload, slot)
        return await self._after_mutation(outcome)

    async def delete_document(self, slot: DocumentSlot) -> list[UploadedDocumentRecord] | None:
        """Exclui só se o resolver permite; depois recarrega a lista."""
        documents = await self._orchestrator.refresh_documents()
        record = find_document(documents, slot.doc_subtype)
        status = await self._status_for(documents, slot)
        if record is None or record.doc_id is None or not status.can_delete:
            state = status.state.value if status.state else None
            raise ActionNotAllowedError("delete", slot.doc_subtype, state)

        refreshed = await self._orchestrator.delete_document(record.doc_id)
        return refreshed if self._alive else None

    # ── 5. Status ───────────────────────────────────────

    async def refresh_statuses(self, slots: list[DocumentSlot]) -> dict[str, DocumentStatus]:
        """Status por subtipo a partir da lista autoritativa."""
        documents = await self._orchestrator.refresh_documents()
        statuses = await asyncio.gather(*(self._status_for(documents, s) for s in slots))
        return {slot.doc_subtype: status for slot, status in zip(slots, statuses)}

    # ── Desmontagem ─────────────────────────────────────

    def close(self) -> None:
        """Síncrono: desliga a câmera e o scanner antes de retornar."""
        self._alive = False
        self._qr.stop()
        self._session.close()
        logger.debug("Capture flow closed")

    # ─── Métodos internos ──────────────────────────────────

    async def _after_mutation(self, outcome: UploadOutcome) -> SubmissionResult | None:
        if not self._alive:
            logger.debug("Discarding upload response after close")
            return None
        documents = await self._orchestrator.refresh_documents()
        if not self._alive:
            return None
        return SubmissionResult(outcome=outcome, documents=documents)

    async def _status_for(
        self,
        documents: list[UploadedDocumentRecord],
        slot: DocumentSlot,
    ) -> DocumentStatus:
        if find_document(documents, slot.doc_subtype) is None:
            return self._resolver.resolve(documents, slot.doc_subtype, None)

        config = await self._policy(slot, default=_MISSING)
        if config is _MISSING:
            # política indisponível: nenhuma ação até conseguir carregar
            return DocumentStatus.provisional()
        if config is None:
            config = DocumentSubtypeConfig(slot.doc_type, slot.doc_subtype, name=slot.doc_name)
        return self._resolver.resolve(documents, slot.doc_subtype, config)

    async def _policy(self, slot: DocumentSlot, default=None) -> DocumentSubtypeConfig | None:
        """
        Política do subtipo. Sem política → None (sem emissão de VC);
        falha de rede → default.
        """
        if self._configs is None:
            return None
        try:
            return await self._configs.get(slot.doc_type, slot.doc_subtype)
        except ConfigMissingError:
            return None
        except NetworkError as e:
            logger.warning("VC configuration unavailable for %s/%s: %s", slot.doc_type, slot.doc_subtype, e)
            return default
