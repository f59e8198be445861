"""
FastAPI Application: Proof Capture Pipeline.

Architecture:
  - Arquivo / câmera / QR → artefato dentro do orçamento de bytes
  - Upload para o backend de documentos (httpx)
  - Status por subtipo a partir da política de emissão de VC (cacheada)
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from proof_capture.api.routes.documents import (
    close_api_client,
    get_config_provider,
    router as documents_router,
)
from proof_capture.config.settings import get_settings

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"

app = FastAPI(
    title="Proof Capture Pipeline",
    description="Capture, normalize and upload proof documents; resolve their VC issuance status.",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents_router, prefix="/api/v1", tags=["Documents"])


@app.on_event("shutdown")
async def shutdown():
    await close_api_client()
    logger.info("Proof Capture Pipeline stopped")


# ── Health ──
@app.get("/health")
async def health():
    return {
        "status": "ok",
        "version": VERSION,
        "env": settings.env,
        "backend": settings.backend_base_url,
        "locale": settings.locale,
        "max_file_size_mb": settings.max_file_size_mb,
        "vc_config_loaded": get_config_provider().loaded,
    }
