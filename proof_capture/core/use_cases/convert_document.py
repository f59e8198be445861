"""
Use Case: Convert Document: PDF multipágina → uma única imagem.

Renderiza todas as páginas, empilha de cima para baixo sobre fundo
branco (largura = maior página, altura = soma das alturas) e codifica
uma imagem. Atômico: qualquer falha → ConversionError, nunca resultado parcial.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace

import numpy as np

from proof_capture.core.entities.artifact import CapturedArtifact
from proof_capture.core.errors import ConversionError
from proof_capture.core.interfaces.image_codec import IImageCodec
from proof_capture.core.interfaces.pdf_renderer import IPDFRenderer

logger = logging.getLogger(__name__)

WHITE = 255


@dataclass(frozen=True)
class ConversionOptions:
    scale: float = 2.0
    quality: float = 0.8
    format: str = "jpeg"           # "jpeg" | "png"


def stack_pages(pages: list[np.ndarray]) -> np.ndarray:
    """Empilha as páginas verticalmente, alinhadas à esquerda, sobre branco."""
    max_width = max(p.shape[1] for p in pages)
    total_height = sum(p.shape[0] for p in pages)

    combined = np.full((total_height, max_width, 3), WHITE, dtype=np.uint8)
    y = 0
    for page in pages:
        h, w = page.shape[:2]
        combined[y:y + h, 0:w] = page
        y += h
    return combined


class DocumentConverter:
    """
    Converte PDF em imagem usando um renderer e um codec injetados.
    """

    def __init__(self, renderer: IPDFRenderer, codec: IImageCodec):
        self._renderer = renderer
        self._codec = codec

    async def convert(
        self,
        file: CapturedArtifact,
        options: ConversionOptions | None = None,
    ) -> CapturedArtifact:
        """Renderização e encode rodam fora do event loop."""
        return await asyncio.to_thread(self.convert_sync, file, options or ConversionOptions())

    def convert_sync(self, file: CapturedArtifact, options: ConversionOptions) -> CapturedArtifact:
        t_start = time.perf_counter()
        logger.info("Starting PDF conversion for %s (%.2f MB)", file.origin_name, file.size_mb)

        try:
            document = self._renderer.open(file.data)
        except Exception as e:
            raise ConversionError(f"Failed to load PDF: {e}") from e

        try:
            page_count = document.page_count
            if page_count < 1:
                raise ConversionError("PDF has no pages")

            pages: list[np.ndarray] = []
            for index in range(page_count):
                try:
                    page = document.render_page(index, options.scale)
                except Exception as e:
                    raise ConversionError(f"Failed to render page {index + 1}/{page_count}: {e}") from e
                if page is None or page.size == 0:
                    raise ConversionError(f"Page {index + 1}/{page_count} rendered empty")
                pages.append(_as_bgr(page))
                logger.debug("Page %d rendered (%dx%d)", index + 1, page.shape[1], page.shape[0])
        finally:
            document.close()

        combined = stack_pages(pages)
        logger.info("Creating combined image: %dx%d", combined.shape[1], combined.shape[0])

        try:
            encoded = self._codec.encode(combined, options.format, options.quality)
        except Exception as e:
            raise ConversionError(f"Failed to encode combined image: {e}") from e
        if not encoded:
            raise ConversionError("Failed to convert canvas to image")

        result = replace(
            file.with_content(encoded, f"image/{options.format}", options.format),
            page_count=page_count,
        )

        logger.info(
            "Conversion complete: %d pages, %.2f MB in %.0f ms",
            page_count, result.size_mb, (time.perf_counter() - t_start) * 1000,
        )
        return result


def _as_bgr(page: np.ndarray) -> np.ndarray:
    """Garante HxWx3 uint8 (páginas em tons de cinza ou com alfa)."""
    if page.ndim == 2:
        page = np.stack([page] * 3, axis=-1)
    elif page.shape[2] == 4:
        page = page[:, :, :3]
    return page.astype(np.uint8, copy=False)
