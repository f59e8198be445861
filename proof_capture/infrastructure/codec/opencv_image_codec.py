"""
Adapter: OpenCV Image Codec

Codificação JPEG/PNG e recompressão iterativa:
  1. Redimensiona para caber em max_width_or_height (INTER_AREA)
  2. Codifica na qualidade inicial
  3. Acima do orçamento → baixa a qualidade; no piso, reduz a escala
"""

import logging

import cv2
import numpy as np

from proof_capture.core.interfaces.image_codec import CompressionOptions, IImageCodec

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 10
QUALITY_STEP = 0.05
MIN_QUALITY = 0.5
SCALE_STEP = 0.85


def _to_cv_quality(quality: float) -> int:
    return int(round(min(max(quality, 0.0), 1.0) * 100))


def fit_within(image: np.ndarray, max_side: int) -> np.ndarray:
    """Reduz mantendo a proporção; nunca amplia."""
    h, w = image.shape[:2]
    longest = max(h, w)
    if longest <= max_side:
        return image
    ratio = max_side / longest
    size = (max(1, int(w * ratio)), max(1, int(h * ratio)))
    return cv2.resize(image, size, interpolation=cv2.INTER_AREA)


class OpenCVImageCodec(IImageCodec):
    """
    Codec baseado em cv2.imencode / cv2.imdecode.
    """

    def __init__(self, max_iterations: int = MAX_ITERATIONS):
        self._max_iterations = max_iterations

    def encode(self, image: np.ndarray, fmt: str = "jpeg", quality: float = 0.92) -> bytes:
        fmt = fmt.lower()
        if fmt == "png":
            ok, buf = cv2.imencode(".png", image)
        else:
            ok, buf = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, _to_cv_quality(quality)])
        if not ok or buf is None:
            return b""
        return buf.tobytes()

    def compress(self, data: bytes, options: CompressionOptions) -> bytes:
        img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
        if img is None:
            raise ValueError("Não foi possível decodificar a imagem")

        budget = options.max_size_bytes
        img = fit_within(img, options.max_width_or_height)
        quality = options.quality
        best = b""

        for iteration in range(1, self._max_iterations + 1):
            encoded = self.encode(img, "jpeg", quality)
            if encoded and (not best or len(encoded) < len(best)):
                best = encoded
            logger.debug(
                "Compression iteration %d: %dx%d q=%.2f -> %d bytes",
                iteration, img.shape[1], img.shape[0], quality, len(encoded),
            )
            if encoded and len(encoded) <= budget:
                return encoded

            if quality - QUALITY_STEP >= MIN_QUALITY:
                quality -= QUALITY_STEP
            else:
                h, w = img.shape[:2]
                size = (max(1, int(w * SCALE_STEP)), max(1, int(h * SCALE_STEP)))
                img = cv2.resize(img, size, interpolation=cv2.INTER_AREA)

        return best
