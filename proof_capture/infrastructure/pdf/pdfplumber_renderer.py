"""
Adapter: pdfplumber PDF Renderer

Rasteriza páginas com pdfplumber (page.to_image → PIL) e entrega
arrays BGR para o conversor.
"""

import io
import logging

import numpy as np
import pdfplumber
from PIL import Image

from proof_capture.core.interfaces.pdf_renderer import IPDFDocument, IPDFRenderer

logger = logging.getLogger(__name__)

BASE_DPI = 72


def pil_to_bgr(image: Image.Image) -> np.ndarray:
    """PIL (qualquer modo) → BGR uint8 sobre branco."""
    if image.mode in ("RGBA", "LA", "P"):
        image = image.convert("RGBA")
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[-1])
        image = background
    elif image.mode != "RGB":
        image = image.convert("RGB")
    rgb = np.asarray(image, dtype=np.uint8)
    return np.ascontiguousarray(rgb[:, :, ::-1])


class PdfPlumberDocument(IPDFDocument):

    def __init__(self, pdf: "pdfplumber.PDF"):
        self._pdf = pdf

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def render_page(self, index: int, scale: float) -> np.ndarray:
        page = self._pdf.pages[index]
        rendered = page.to_image(resolution=BASE_DPI * scale)
        return pil_to_bgr(rendered.original)

    def close(self) -> None:
        self._pdf.close()


class PdfPlumberRenderer(IPDFRenderer):

    def open(self, data: bytes) -> IPDFDocument:
        pdf = pdfplumber.open(io.BytesIO(data))
        logger.debug("PDF opened: %d pages", len(pdf.pages))
        return PdfPlumberDocument(pdf)
