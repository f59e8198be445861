"""
Adapter: OpenCV Camera

Câmera via cv2.VideoCapture. A abertura (lenta, bloqueante) roda
numa thread; a leitura de frames é síncrona e curta.
"""

import asyncio
import logging
import threading

import cv2
import numpy as np

from proof_capture.core.interfaces.camera_device import (
    CameraConstraints,
    FacingMode,
    ICameraDevice,
    ICameraStream,
)

logger = logging.getLogger(__name__)


class OpenCVCameraStream(ICameraStream):
    """Stream sobre um VideoCapture aberto."""

    def __init__(self, capture: "cv2.VideoCapture"):
        self._capture = capture
        self._lock = threading.Lock()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def read_frame(self) -> np.ndarray | None:
        with self._lock:
            if self._stopped:
                return None
            ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        return frame

    def stop(self) -> None:
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._capture.release()
        logger.debug("Camera released")


class OpenCVCamera(ICameraDevice):
    """
    Seleciona o índice do dispositivo pela preferência de câmera
    (traseira/frontal) e pede a resolução ideal.
    """

    def __init__(self, rear_index: int = 0, front_index: int = 0):
        self._indexes = {
            FacingMode.ENVIRONMENT: rear_index,
            FacingMode.USER: front_index,
        }

    async def open(self, constraints: CameraConstraints) -> ICameraStream:
        index = self._indexes[constraints.facing_mode]
        capture = await asyncio.to_thread(self._open_capture, index, constraints)
        return OpenCVCameraStream(capture)

    def _open_capture(self, index: int, constraints: CameraConstraints) -> "cv2.VideoCapture":
        capture = cv2.VideoCapture(index)
        if not capture.isOpened():
            capture.release()
            raise RuntimeError(f"Camera {index} not available")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.ideal_width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.ideal_height)
        logger.info(
            "Camera %d opened: %dx%d (ideal %dx%d)",
            index,
            int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            constraints.ideal_width, constraints.ideal_height,
        )
        return capture
