"""Shared fakes and fixtures for pytest"""

import numpy as np
import pytest

from proof_capture.core.entities.artifact import MB, CapturedArtifact, SourceMethod
from proof_capture.core.entities.document import (
    DocumentSlot,
    DocumentSubtypeConfig,
    UploadedDocumentRecord,
)
from proof_capture.core.errors import ConfigMissingError, NetworkError
from proof_capture.core.interfaces.camera_device import ICameraDevice, ICameraStream
from proof_capture.core.interfaces.document_api import IConfigurationProvider, IDocumentApi
from proof_capture.core.interfaces.image_codec import IImageCodec
from proof_capture.core.interfaces.pdf_renderer import IPDFDocument, IPDFRenderer
from proof_capture.core.interfaces.qr_reader import IQRCodeReader
from proof_capture.core.use_cases.capture_flow import DocumentCaptureFlow
from proof_capture.core.use_cases.capture_session import CaptureSession
from proof_capture.core.use_cases.convert_document import DocumentConverter
from proof_capture.core.use_cases.normalize_image import ImageNormalizer
from proof_capture.core.use_cases.qr_decoder import QRDecoder
from proof_capture.core.use_cases.upload_document import UploadOrchestrator
from proof_capture.core.use_cases.validate_file import FileValidator


# ── Camera ──

class FakeStream(ICameraStream):
    def __init__(self, frames=None):
        self.frames = list(frames) if frames is not None else None
        self.stop_calls = 0

    @property
    def stopped(self) -> bool:
        return self.stop_calls > 0

    def read_frame(self):
        if self.stopped:
            return None
        if self.frames is None:
            return np.zeros((48, 64, 3), dtype=np.uint8)
        if not self.frames:
            return None
        return self.frames.pop(0)

    def stop(self) -> None:
        self.stop_calls += 1


class FakeCamera(ICameraDevice):
    def __init__(self, frames=None, fail: Exception | None = None):
        self.frames = frames
        self.fail = fail
        self.opened: list[FakeStream] = []
        self.constraints = []

    async def open(self, constraints):
        self.constraints.append(constraints)
        if self.fail is not None:
            raise self.fail
        stream = FakeStream(self.frames)
        self.opened.append(stream)
        return stream


class FakeQRReader(IQRCodeReader):
    """Each frame carries its payload in the top-left pixel: 0 = nothing, n = results[n]."""

    def __init__(self, results: dict[int, str] | None = None):
        self.results = results or {}
        self.calls = 0

    def decode(self, frame):
        self.calls += 1
        return self.results.get(int(frame[0, 0, 0]))


def marked_frame(marker: int, size: int = 300) -> np.ndarray:
    frame = np.zeros((size, size, 3), dtype=np.uint8)
    # scan region is centred, so mark the whole frame
    frame[:, :, 0] = marker
    return frame


# ── Codec ──

class FakeCodec(IImageCodec):
    def __init__(self, encoded: bytes = b"\xff\xd8jpeg", compressed: bytes | None = None,
                 fail: Exception | None = None):
        self.encoded = encoded
        self.compressed = compressed
        self.fail = fail
        self.encoded_shapes = []
        self.compress_calls = []

    def encode(self, image, fmt="jpeg", quality=0.92) -> bytes:
        self.encoded_shapes.append(image.shape)
        return self.encoded

    def compress(self, data, options) -> bytes:
        self.compress_calls.append(options)
        if self.fail is not None:
            raise self.fail
        return self.compressed if self.compressed is not None else data[: len(data) // 2]


# ── PDF ──

class FakePDFDocument(IPDFDocument):
    def __init__(self, pages, fail_on: int | None = None):
        self.pages = pages
        self.fail_on = fail_on
        self.closed = False

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def render_page(self, index, scale):
        if index == self.fail_on:
            raise RuntimeError("render failed")
        return self.pages[index]

    def close(self) -> None:
        self.closed = True


class FakePDFRenderer(IPDFRenderer):
    def __init__(self, pages=None, fail_on: int | None = None):
        self.pages = pages or []
        self.fail_on = fail_on
        self.documents: list[FakePDFDocument] = []

    def open(self, data):
        document = FakePDFDocument(self.pages, self.fail_on)
        self.documents.append(document)
        return document


# ── Backend ──

class FakeDocumentApi(IDocumentApi):
    def __init__(self, documents=None, configurations=None, upload_response=None):
        self.documents = list(documents or [])
        self.configurations = list(configurations or [])
        self.upload_response = upload_response or {"statusCode": 200, "message": "ok", "data": {}}
        self.uploads = []
        self.qr_uploads = []
        self.deleted = []
        self.list_calls = 0
        self.config_calls = 0
        self.locale = "en"
        self.fail_config: Exception | None = None

    async def upload_document(self, data, filename, mime_type, fields):
        self.uploads.append({"data": data, "filename": filename, "mime_type": mime_type, "fields": fields})
        return self.upload_response

    async def upload_document_qr(self, payload):
        self.qr_uploads.append(payload)
        return self.upload_response

    async def list_documents(self):
        self.list_calls += 1
        return list(self.documents)

    async def delete_document(self, doc_id):
        self.deleted.append(doc_id)
        self.documents = [d for d in self.documents if d.get("doc_id") != doc_id]
        return {"statusCode": 200, "message": "deleted"}

    async def fetch_vc_configurations(self):
        self.config_calls += 1
        if self.fail_config is not None:
            raise self.fail_config
        return list(self.configurations)

    def set_locale(self, locale):
        self.locale = locale


class FakeConfigProvider(IConfigurationProvider):
    def __init__(self, configs=None, fail: Exception | None = None):
        self.configs = {c.key: c for c in (configs or [])}
        self.fail = fail
        self.invalidations = 0

    async def get(self, doc_type, doc_subtype):
        if self.fail is not None:
            raise self.fail
        config = self.configs.get((doc_type, doc_subtype))
        if config is None:
            raise ConfigMissingError(doc_type, doc_subtype)
        return config

    def invalidate(self):
        self.invalidations += 1


# ── Helpers ──

def make_artifact(size_bytes: int, mime_type: str = "image/jpeg", name: str = "photo.jpg",
                  source: SourceMethod = SourceMethod.FILE) -> CapturedArtifact:
    return CapturedArtifact(data=b"x" * size_bytes, mime_type=mime_type, origin_name=name, source_method=source)


def make_record(doc_subtype: str = "marksheet", **overrides) -> UploadedDocumentRecord:
    data = {
        "doc_id": "doc-1",
        "doc_type": "academic",
        "doc_subtype": doc_subtype,
        "doc_name": "Marksheet",
        "doc_verified": False,
        "vc_status": None,
    }
    data.update(overrides)
    return UploadedDocumentRecord.from_api(data)


def api_config(doc_type="academic", doc_subtype="marksheet", issue_vc="yes", issuer="did:web:board", **extra):
    item = {
        "name": "Marksheet",
        "label": "Marksheet",
        "docType": doc_type,
        "documentSubType": doc_subtype,
        "issueVC": issue_vc,
        "vcFields": '{"studentName": {"type": "string"}, "originalvc": {"type": "object"}}',
        "issuer": issuer,
    }
    item.update(extra)
    return item


@pytest.fixture
def slot() -> DocumentSlot:
    return DocumentSlot("academic", "marksheet", "Marksheet")


@pytest.fixture
def vc_config() -> DocumentSubtypeConfig:
    return DocumentSubtypeConfig("academic", "marksheet", name="Marksheet", issuer="did:web:board", issue_vc=True)


@pytest.fixture
def plain_config() -> DocumentSubtypeConfig:
    return DocumentSubtypeConfig("academic", "marksheet", name="Marksheet", issue_vc=False)


@pytest.fixture
def network_down() -> NetworkError:
    return NetworkError(status_code=503)


@pytest.fixture
def two_mb() -> int:
    return 2 * MB


FINALIZED = {"statusCode": 201, "message": "ok",
             "data": {"doc_id": "7", "doc_type": "academic", "doc_subtype": "marksheet"}}


def build_flow(api=None, configs=None, codec=None, renderer=None, camera=None, qr_results=None,
               budget=2 * MB) -> DocumentCaptureFlow:
    api = api or FakeDocumentApi(upload_response=FINALIZED)
    configs = configs if configs is not None else FakeConfigProvider([])
    codec = codec or FakeCodec()
    camera = camera or FakeCamera()
    return DocumentCaptureFlow(
        validator=FileValidator(budget),
        converter=DocumentConverter(renderer or FakePDFRenderer([np.zeros((10, 10, 3), np.uint8)]), codec),
        normalizer=ImageNormalizer(codec),
        capture_session=CaptureSession(camera, codec),
        qr_decoder=QRDecoder(camera, FakeQRReader(qr_results or {}), fps=1000),
        orchestrator=UploadOrchestrator(api, configs, budget),
        config_provider=configs,
    )
