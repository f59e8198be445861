"""
Use Case: Capture Session: câmera ao vivo → foto JPEG.

Estados: IDLE → STARTING → LIVE → {CAPTURED | IDLE (stop) | ERROR}.
A sessão é dona exclusiva do stream e o libera em todo caminho de
saída (stop, cancel, retake, close, erro).
"""

import logging
import time
from enum import Enum

from proof_capture.core.entities.artifact import CapturedArtifact, SourceMethod
from proof_capture.core.errors import CameraAccessError
from proof_capture.core.interfaces.camera_device import (
    CameraConstraints,
    ICameraDevice,
    ICameraStream,
    preferred_facing_mode,
)
from proof_capture.core.interfaces.image_codec import IImageCodec

logger = logging.getLogger(__name__)

CAPTURE_JPEG_QUALITY = 0.92


class CaptureState(str, Enum):
    IDLE = "IDLE"
    STARTING = "STARTING"
    LIVE = "LIVE"
    CAPTURED = "CAPTURED"
    ERROR = "ERROR"


class CaptureSession:
    """
    Sessão de captura por câmera.

    Dependency Injection: câmera e codec vêm pelo construtor.
    """

    def __init__(
        self,
        camera: ICameraDevice,
        codec: IImageCodec,
        user_agent: str | None = None,
        ideal_width: int = 1920,
        ideal_height: int = 1080,
        jpeg_quality: float = CAPTURE_JPEG_QUALITY,
        clock=time.time,
    ):
        self._camera = camera
        self._codec = codec
        self._user_agent = user_agent
        self._ideal_width = ideal_width
        self._ideal_height = ideal_height
        self._jpeg_quality = jpeg_quality
        self._clock = clock

        self._state = CaptureState.IDLE
        self._stream: ICameraStream | None = None
        self._artifact: CapturedArtifact | None = None
        self._error: CameraAccessError | None = None
        self._closed = False
        self._attempt = 0

    # ─── Estado ─────────────────────────────────────────

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def artifact(self) -> CapturedArtifact | None:
        return self._artifact

    @property
    def error(self) -> CameraAccessError | None:
        return self._error

    @property
    def is_live(self) -> bool:
        return self._state == CaptureState.LIVE

    # ─── Ciclo de vida ──────────────────────────────────

    async def start(self) -> None:
        """Abre a câmera. No-op se já está iniciando ou ao vivo."""
        if self._closed:
            raise CameraAccessError("Capture session is closed")
        if self._state in (CaptureState.STARTING, CaptureState.LIVE):
            return

        self._attempt += 1
        attempt = self._attempt
        self._state = CaptureState.STARTING
        self._artifact = None
        self._error = None
        constraints = CameraConstraints(
            facing_mode=preferred_facing_mode(self._user_agent),
            ideal_width=self._ideal_width,
            ideal_height=self._ideal_height,
        )

        try:
            stream = await self._camera.open(constraints)
        except Exception as e:
            logger.error("Camera access error: %s", e)
            self._state = CaptureState.ERROR
            self._error = CameraAccessError(
                "Unable to access the camera. Please check camera permissions."
            )
            raise self._error from e

        # stop()/close() chegou enquanto a câmera abria
        if attempt != self._attempt or self._state != CaptureState.STARTING:
            stream.stop()
            return

        self._stream = stream
        self._state = CaptureState.LIVE
        logger.info("Camera started (facing=%s)", constraints.facing_mode.value)

    async def capture_photo(self) -> CapturedArtifact:
        """Captura o frame atual em resolução nativa e libera a câmera."""
        if self._state != CaptureState.LIVE or self._stream is None:
            raise CameraAccessError("Camera is not live")

        frame = self._stream.read_frame()
        if frame is None or frame.size == 0:
            raise CameraAccessError("No frame available from camera")

        data = self._codec.encode(frame, "jpeg", self._jpeg_quality)
        if not data:
            raise CameraAccessError("Failed to encode captured frame")

        self._release()
        self._artifact = CapturedArtifact(
            data=data,
            mime_type="image/jpeg",
            origin_name=f"capture-{int(self._clock() * 1000)}.jpg",
            source_method=SourceMethod.CAMERA,
        )
        self._state = CaptureState.CAPTURED
        logger.info(
            "Photo captured: %dx%d, %.2f MB",
            frame.shape[1], frame.shape[0], self._artifact.size_mb,
        )
        return self._artifact

    async def retake(self) -> None:
        """Descarta a foto e reabre a câmera."""
        self.cancel()
        await self.start()

    def stop(self) -> None:
        """Para todas as tracks. Idempotente; seguro após close()."""
        self._release()
        if self._state != CaptureState.CAPTURED:
            self._state = CaptureState.IDLE

    def cancel(self) -> None:
        """stop() + descarta a foto em andamento."""
        self._artifact = None
        self._error = None
        self._release()
        self._state = CaptureState.IDLE

    def close(self) -> None:
        """Desmontagem: libera tudo e recusa novos start()."""
        self._closed = True
        self.cancel()

    def _release(self) -> None:
        self._attempt += 1
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
            except Exception as e:
                logger.warning("Error stopping camera stream: %s", e)

    async def __aenter__(self) -> "CaptureSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()
