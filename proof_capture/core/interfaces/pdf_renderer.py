"""
Contract: PDF Renderer

Rasteriza páginas de um PDF. O motor de renderização é externo;
o conversor só depende de page_count + render_page.
"""

from abc import ABC, abstractmethod

import numpy as np


class IPDFDocument(ABC):
    """PDF aberto."""

    @property
    @abstractmethod
    def page_count(self) -> int:
        ...

    @abstractmethod
    def render_page(self, index: int, scale: float) -> np.ndarray:
        """
        Renderiza uma página.

        Args:
            index: Página (base 0).
            scale: Fator sobre 72 dpi (2.0 = 144 dpi).

        Returns:
            Imagem BGR (HxWx3, uint8).
        """
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class IPDFRenderer(ABC):
    """Port: PDF Renderer"""

    @abstractmethod
    def open(self, data: bytes) -> IPDFDocument:
        """Abre o PDF a partir dos bytes. Levanta exceção se inválido."""
        ...
