"""
Routes: documentos comprobatórios.

  POST   /documents/upload         arquivo → validação/conversão/compressão → upload
  POST   /documents/qr             conteúdo de QR → upload direto
  GET    /documents/status         status por subtipo configurado
  DELETE /documents/{doc_subtype}  só quando o resolver permite
  POST   /config/invalidate        recarrega as políticas de VC
  PUT    /config/locale            troca de idioma (invalida o cache)
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from proof_capture.api.presentation import present
from proof_capture.api.schemas.responses import (
    DeleteResponse,
    DocumentRecordResponse,
    DocumentStatusResponse,
    LocaleRequest,
    QRUploadRequest,
    UploadResponse,
)
from proof_capture.config.settings import get_settings
from proof_capture.core.entities.artifact import CapturedArtifact
from proof_capture.core.entities.document import DocumentSlot, ImportedFrom, UploadedDocumentRecord
from proof_capture.core.errors import (
    ActionNotAllowedError,
    CameraAccessError,
    CompressionError,
    ConfigMissingError,
    ConversionError,
    NetworkError,
    ProofCaptureError,
    ValidationError,
)
from proof_capture.core.use_cases.capture_flow import DocumentCaptureFlow
from proof_capture.core.use_cases.upload_document import UploadOutcome
from proof_capture.infrastructure.config.vc_configuration_cache import VCConfigurationCache
from proof_capture.infrastructure.factory import (
    build_api_client,
    build_capture_flow,
    build_config_cache,
)
from proof_capture.infrastructure.http.document_api_client import DocumentApiClient

logger = logging.getLogger(__name__)

router = APIRouter()

# Lazy singletons
_api_client: DocumentApiClient | None = None
_config_cache: VCConfigurationCache | None = None


def get_api_client() -> DocumentApiClient:
    global _api_client
    if _api_client is None:
        _api_client = build_api_client(get_settings())
    return _api_client


def get_config_provider() -> VCConfigurationCache:
    """Cache de políticas compartilhado por todas as requisições."""
    global _config_cache
    if _config_cache is None:
        _config_cache = build_config_cache(get_api_client())
    return _config_cache


def get_flow(request: Request):
    """Um fluxo por requisição, fechado ao final."""
    flow = build_capture_flow(
        get_settings(),
        get_api_client(),
        get_config_provider(),
        user_agent=request.headers.get("user-agent"),
    )
    try:
        yield flow
    finally:
        flow.close()


async def close_api_client() -> None:
    global _api_client, _config_cache
    if _api_client is not None:
        await _api_client.aclose()
    _api_client = None
    _config_cache = None


# ── Upload ──
@router.post("/documents/upload", response_model=UploadResponse)
async def upload_document(
    file: UploadFile = File(...),
    doc_type: str = Form(...),
    doc_subtype: str = Form(...),
    doc_name: str = Form(...),
    flow: DocumentCaptureFlow = Depends(get_flow),
):
    """
    Upload de imagem ou PDF.

    - PDF multipágina vira uma única imagem
    - Imagem acima de 80% do limite é comprimida
    - Subtipos com emissão de VC devolvem pending_issuance=True
    """
    data = await file.read()
    if len(data) == 0:
        raise HTTPException(status_code=400, detail={"message": "Empty file", "code": "size"})

    slot = DocumentSlot(doc_type, doc_subtype, doc_name)
    try:
        artifact = await flow.prepare_file(
            file.filename or "document", file.content_type or "", data, slot
        )
        result = await flow.submit_file(artifact, slot, ImportedFrom.MANUAL_UPLOAD)
    except ProofCaptureError as e:
        raise _to_http(e) from e

    return _upload_response(result.outcome, result.documents, artifact)


@router.post("/documents/qr", response_model=UploadResponse)
async def upload_qr(req: QRUploadRequest, flow: DocumentCaptureFlow = Depends(get_flow)):
    """Conteúdo de QR (referência a VC). A lista devolvida é a do servidor."""
    slot = DocumentSlot(req.doc_type, req.doc_subtype, req.doc_name)
    try:
        result = await flow.submit_qr(req.qr_content, slot)
    except ProofCaptureError as e:
        raise _to_http(e) from e

    return _upload_response(result.outcome, result.documents)


# ── Status ──
@router.get("/documents/status", response_model=list[DocumentStatusResponse])
async def document_statuses(
    flow: DocumentCaptureFlow = Depends(get_flow),
    configs: VCConfigurationCache = Depends(get_config_provider),
):
    """Um item por subtipo configurado, com ações permitidas e apresentação."""
    try:
        slots = [config.to_slot() for config in await configs.get_all()]
        statuses = await flow.refresh_statuses(slots)
    except ProofCaptureError as e:
        raise _to_http(e) from e

    items = []
    for slot in slots:
        status = statuses[slot.doc_subtype]
        look = present(status)
        items.append(DocumentStatusResponse(
            doc_type=slot.doc_type,
            doc_subtype=slot.doc_subtype,
            doc_name=slot.doc_name,
            state=status.state.value if status.state else None,
            can_preview=status.can_preview,
            can_delete=status.can_delete,
            can_reupload=status.can_reupload,
            icon=look.icon,
            color=look.color,
            label_key=look.label_key,
        ))
    return items


# ── Delete ──
@router.delete("/documents/{doc_subtype}", response_model=DeleteResponse)
async def delete_document(
    doc_subtype: str,
    doc_type: str | None = None,
    flow: DocumentCaptureFlow = Depends(get_flow),
    configs: VCConfigurationCache = Depends(get_config_provider),
):
    try:
        slot = await _slot_for(configs, doc_subtype, doc_type)
        documents = await flow.delete_document(slot)
    except ProofCaptureError as e:
        raise _to_http(e) from e

    return DeleteResponse(deleted=True, documents=[_record_response(d) for d in documents or []])


# ── Config ──
@router.post("/config/invalidate")
async def invalidate_config(configs: VCConfigurationCache = Depends(get_config_provider)):
    configs.invalidate()
    return {"invalidated": True}


@router.put("/config/locale")
async def change_locale(req: LocaleRequest, configs: VCConfigurationCache = Depends(get_config_provider)):
    configs.on_locale_change(req.locale)
    return {"locale": req.locale, "invalidated": True}


# ─── Helpers ──────────────────────────────────────────

async def _slot_for(configs: VCConfigurationCache, doc_subtype: str, doc_type: str | None) -> DocumentSlot:
    for config in await configs.get_all():
        if config.doc_subtype == doc_subtype and (doc_type is None or config.doc_type == doc_type):
            return config.to_slot()
    raise ConfigMissingError(doc_type or "*", doc_subtype)


def _to_http(e: ProofCaptureError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail={"message": e.display_message, "code": e.code})
    if isinstance(e, (ConversionError, CompressionError)):
        code = e.reason.value if isinstance(e, CompressionError) else "conversion"
        return HTTPException(status_code=422, detail={"message": e.display_message, "code": code})
    if isinstance(e, ConfigMissingError):
        return HTTPException(status_code=404, detail={"message": e.display_message, "code": "config"})
    if isinstance(e, ActionNotAllowedError):
        return HTTPException(status_code=409, detail={"message": e.display_message, "code": e.action})
    if isinstance(e, CameraAccessError):
        return HTTPException(status_code=503, detail={"message": e.display_message, "code": "camera"})
    if isinstance(e, NetworkError):
        status = e.status_code if e.status_code and 400 <= e.status_code < 600 else 502
        return HTTPException(
            status_code=status,
            detail={"message": e.display_message, "messages": e.messages, "code": "network"},
        )
    logger.error("Unmapped pipeline error: %s", e)
    return HTTPException(status_code=500, detail={"message": e.display_message})


def _record_response(record: UploadedDocumentRecord) -> DocumentRecordResponse:
    window = record.validity_window
    return DocumentRecordResponse(
        doc_id=record.doc_id,
        doc_type=record.doc_type,
        doc_subtype=record.doc_subtype,
        doc_name=record.doc_name,
        imported_from=record.imported_from,
        uploaded_at=record.uploaded_at,
        doc_verified=record.doc_verified,
        vc_status=record.vc_status.value,
        download_url=record.download_url,
        valid_until=window.valid_until if window else None,
    )


def _upload_response(
    outcome: UploadOutcome,
    documents: list[UploadedDocumentRecord],
    artifact: CapturedArtifact | None = None,
) -> UploadResponse:
    return UploadResponse(
        pending_issuance=outcome.pending_issuance,
        message=outcome.message,
        status_code=outcome.status_code,
        authoritative=outcome.authoritative,
        record=_record_response(outcome.record) if outcome.record else None,
        mapped_data=outcome.mapped_data,
        documents=[_record_response(d) for d in documents],
        artifact_size_mb=round(artifact.size_mb, 3) if artifact else None,
        page_count=artifact.page_count if artifact else None,
        latency_ms=outcome.latency_ms,
    )
