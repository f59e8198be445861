"""
Factory: monta o pipeline de captura com os adapters concretos.

Usado pela API e pelos scripts; testes injetam fakes direto
no DocumentCaptureFlow.
"""

from proof_capture.config.settings import Settings
from proof_capture.core.interfaces.document_api import IConfigurationProvider, IDocumentApi
from proof_capture.core.use_cases.capture_flow import DocumentCaptureFlow
from proof_capture.core.use_cases.capture_session import CaptureSession
from proof_capture.core.use_cases.convert_document import ConversionOptions, DocumentConverter
from proof_capture.core.use_cases.normalize_image import ImageNormalizer
from proof_capture.core.use_cases.qr_decoder import QRDecoder
from proof_capture.core.use_cases.upload_document import UploadOrchestrator
from proof_capture.core.use_cases.validate_file import FileValidator
from proof_capture.infrastructure.camera.opencv_camera import OpenCVCamera
from proof_capture.infrastructure.codec.opencv_image_codec import OpenCVImageCodec
from proof_capture.infrastructure.config.vc_configuration_cache import VCConfigurationCache
from proof_capture.infrastructure.http.document_api_client import DocumentApiClient
from proof_capture.infrastructure.pdf.pdfplumber_renderer import PdfPlumberRenderer
from proof_capture.infrastructure.qr.opencv_qr_reader import OpenCVQRReader


def build_api_client(settings: Settings) -> DocumentApiClient:
    return DocumentApiClient(
        base_url=settings.backend_base_url,
        token=settings.backend_token,
        locale=settings.locale,
        timeout=settings.backend_timeout_seconds,
    )


def build_config_cache(api: IDocumentApi) -> VCConfigurationCache:
    return VCConfigurationCache(api)


def build_capture_flow(
    settings: Settings,
    api: IDocumentApi,
    configs: IConfigurationProvider,
    user_agent: str | None = None,
) -> DocumentCaptureFlow:
    """Uma instância por tela / requisição."""
    codec = OpenCVImageCodec()
    camera = OpenCVCamera(
        rear_index=settings.camera_rear_index,
        front_index=settings.camera_front_index,
    )
    return DocumentCaptureFlow(
        validator=FileValidator(settings.max_file_size_bytes),
        converter=DocumentConverter(PdfPlumberRenderer(), codec),
        normalizer=ImageNormalizer(codec, threshold_ratio=settings.compress_threshold_ratio),
        capture_session=CaptureSession(
            camera,
            codec,
            user_agent=user_agent,
            ideal_width=settings.camera_ideal_width,
            ideal_height=settings.camera_ideal_height,
            jpeg_quality=settings.camera_jpeg_quality,
        ),
        qr_decoder=QRDecoder(
            camera,
            OpenCVQRReader(),
            user_agent=user_agent,
            fps=settings.qr_fps,
            box_size=settings.qr_box_size,
        ),
        orchestrator=UploadOrchestrator(api, configs, settings.max_file_size_bytes),
        config_provider=configs,
        conversion_options=ConversionOptions(
            scale=settings.pdf_scale,
            quality=settings.pdf_quality,
            format=settings.pdf_format,
        ),
    )
