"""
Use Case: Normalize Image: compressão sob orçamento rígido de bytes.

Comprime antes da falha dura (acima de ~80% do limite) e falha fechado:
se o codec não consegue ficar abaixo do orçamento, o artefato é descartado.
"""

import asyncio
import logging

from proof_capture.core.entities.artifact import MB, CapturedArtifact
from proof_capture.core.errors import CompressionError, CompressionFailure
from proof_capture.core.interfaces.image_codec import CompressionOptions, IImageCodec

logger = logging.getLogger(__name__)

COMPRESS_THRESHOLD_RATIO = 0.8


def should_compress(size_bytes: int, max_size_bytes: int, ratio: float = COMPRESS_THRESHOLD_RATIO) -> bool:
    return size_bytes > max_size_bytes * ratio


def optimal_compression_options(size_bytes: int, max_size_mb: float) -> CompressionOptions:
    """Arquivos maiores partem de dimensões/qualidade menores."""
    size_mb = size_bytes / MB
    if size_mb > 5:
        return CompressionOptions(max_size_mb=max_size_mb, max_width=1600, max_height=1600, quality=0.75)
    if size_mb > 3:
        return CompressionOptions(max_size_mb=max_size_mb, max_width=1920, max_height=1920, quality=0.8)
    return CompressionOptions(max_size_mb=max_size_mb, max_width=1920, max_height=1920, quality=0.85)


class ImageNormalizer:
    """
    Downsample de dimensões/qualidade delegado ao codec.
    Nunca altera o artefato de entrada.
    """

    def __init__(self, codec: IImageCodec, threshold_ratio: float = COMPRESS_THRESHOLD_RATIO):
        self._codec = codec
        self._threshold_ratio = threshold_ratio

    @property
    def threshold_ratio(self) -> float:
        return self._threshold_ratio

    def should_compress(self, file: CapturedArtifact, max_size_bytes: int) -> bool:
        return should_compress(file.size_bytes, max_size_bytes, self._threshold_ratio)

    async def compress(
        self,
        file: CapturedArtifact,
        options: CompressionOptions,
        force: bool = False,
    ) -> CapturedArtifact:
        """force=True recomprime mesmo dentro do orçamento (acima do limiar)."""
        budget = options.max_size_bytes
        if file.size_bytes <= budget and not force:
            return file

        logger.info(
            "Starting image compression: %s %.2f MB (budget %.2f MB)",
            file.origin_name, file.size_mb, options.max_size_mb,
        )

        try:
            data = await asyncio.to_thread(self._codec.compress, file.data, options)
        except Exception as e:
            logger.error("Image compression failed for %s: %s", file.origin_name, e)
            raise CompressionError(
                CompressionFailure.CODEC_FAILURE, "Failed to compress image"
            ) from e

        if not data:
            raise CompressionError(CompressionFailure.CODEC_FAILURE, "Codec produced no data")

        if len(data) > budget:
            size_mb = len(data) / MB
            logger.warning(
                "Image still exceeds budget after compression: %.2f MB > %.2f MB",
                size_mb, options.max_size_mb,
            )
            raise CompressionError(
                CompressionFailure.EXCEEDS_AFTER_COMPRESSION,
                f"Image size ({size_mb:.2f} MB) still exceeds {options.max_size_mb:g} MB after compression.",
                size_bytes=len(data),
            )

        compressed = file.with_content(data, "image/jpeg", "jpg")
        logger.info(
            "Image compression complete: %.2f MB -> %.2f MB (%.1f%% reduction)",
            file.size_mb, compressed.size_mb,
            (file.size_bytes - compressed.size_bytes) / file.size_bytes * 100,
        )
        return compressed
