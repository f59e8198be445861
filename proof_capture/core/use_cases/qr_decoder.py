"""
Use Case: QR Decoder: protocolo single-shot.

Abre a câmera, amostra frames a uma taxa fixa dentro de uma região
de scan central e, no primeiro QR decodificado, chama on_decode
exatamente uma vez e derruba a câmera. Frames seguintes são ignorados.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable

import numpy as np

from proof_capture.core.errors import CameraAccessError
from proof_capture.core.interfaces.camera_device import (
    CameraConstraints,
    ICameraDevice,
    ICameraStream,
    preferred_facing_mode,
)
from proof_capture.core.interfaces.qr_reader import IQRCodeReader

logger = logging.getLogger(__name__)

QR_SCAN_FPS = 10
QR_BOX_SIZE = 250

OnDecode = Callable[[str], Awaitable[None] | None]
OnError = Callable[[CameraAccessError], Awaitable[None] | None]


def scan_region(frame: np.ndarray, box_size: int) -> np.ndarray:
    """Quadrado central de box_size px (ou o frame inteiro, se menor)."""
    h, w = frame.shape[:2]
    side = min(box_size, h, w)
    y0 = (h - side) // 2
    x0 = (w - side) // 2
    return frame[y0:y0 + side, x0:x0 + side]


class QRDecoder:
    """
    Leitor de QR ao vivo. Cada instância é dona do seu stream.
    """

    def __init__(
        self,
        camera: ICameraDevice,
        reader: IQRCodeReader,
        user_agent: str | None = None,
        fps: int = QR_SCAN_FPS,
        box_size: int = QR_BOX_SIZE,
    ):
        self._camera = camera
        self._reader = reader
        self._user_agent = user_agent
        self._interval = 1.0 / max(fps, 1)
        self._box_size = box_size

        self._stream: ICameraStream | None = None
        self._task: asyncio.Task | None = None
        self._starting = False
        self._fired = False
        self._stopped = True

    @property
    def scanning(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def decoded(self) -> bool:
        return self._fired

    async def start(self, on_decode: OnDecode, on_error: OnError | None = None) -> None:
        """Abre a câmera e inicia o loop de scan. No-op se já ativo."""
        if self._starting or self.scanning:
            return

        self._starting = True
        self._fired = False
        self._stopped = False
        try:
            constraints = CameraConstraints(facing_mode=preferred_facing_mode(self._user_agent))
            try:
                stream = await self._camera.open(constraints)
            except Exception as e:
                logger.error("QR camera error: %s", e)
                self._stopped = True
                if on_error is not None:
                    await _maybe_await(on_error(CameraAccessError(
                        "Unable to start the camera for QR scanning."
                    )))
                return

            if self._stopped:
                stream.stop()
                return

            self._stream = stream
            self._task = asyncio.create_task(self._scan_loop(stream, on_decode, on_error))
            logger.info("QR scanner started")
        finally:
            self._starting = False

    async def wait(self) -> None:
        """Aguarda o fim do loop de scan (decode ou stop)."""
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def stop(self) -> None:
        """Idempotente; seguro após desmontagem."""
        self._stopped = True
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        self._release()

    # ─── Métodos internos ──────────────────────────────────

    async def _scan_loop(self, stream: ICameraStream, on_decode: OnDecode, on_error: OnError | None) -> None:
        try:
            while not self._stopped and not self._fired:
                try:
                    frame = stream.read_frame()
                except Exception as e:
                    logger.error("QR camera lost during scan: %s", e)
                    if on_error is not None:
                        await _maybe_await(on_error(CameraAccessError(
                            "The camera stopped while scanning for a QR code."
                        )))
                    return
                await self._handle_frame(frame, on_decode)
                if self._fired:
                    return
                await asyncio.sleep(self._interval)
        finally:
            # um stop() + start() já trocou o stream: não mexer no novo
            if self._stream is stream:
                self._stopped = True
                self._release()

    async def _handle_frame(self, frame: np.ndarray | None, on_decode: OnDecode) -> None:
        if frame is None or not frame.size:
            return
        text = self._decode(frame)
        if not text or self._fired:
            return

        self._fired = True
        payload = text.strip()
        logger.info("QR code decoded (%d chars)", len(payload))
        try:
            await _maybe_await(on_decode(payload))
        except Exception as e:
            logger.error("Error in QR decode callback: %s", e)

    def _decode(self, frame: np.ndarray) -> str | None:
        # "nenhum código no frame" não é erro
        try:
            return self._reader.decode(scan_region(frame, self._box_size))
        except Exception as e:
            logger.debug("QR frame decode failed: %s", e)
            return None

    def _release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
            except Exception as e:
                logger.warning("Error stopping QR camera: %s", e)


async def _maybe_await(result) -> None:
    if inspect.isawaitable(result):
        await result
