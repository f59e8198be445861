"""
Contract: Image Codec

Codifica frames e recomprime imagens. A estratégia de compressão
(qualidade, redimensionamento, iterações) pertence à implementação.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class CompressionOptions:
    max_size_mb: float
    max_width: int = 1920
    max_height: int = 1920
    quality: float = 0.85          # qualidade inicial JPEG (0-1)

    @property
    def max_size_bytes(self) -> int:
        return int(self.max_size_mb * 1024 * 1024)

    @property
    def max_width_or_height(self) -> int:
        return max(self.max_width, self.max_height)


class IImageCodec(ABC):
    """Port: Image Codec"""

    @abstractmethod
    def encode(self, image: np.ndarray, fmt: str = "jpeg", quality: float = 0.92) -> bytes:
        """
        Codifica uma imagem BGR.

        Args:
            image: Imagem HxWx3.
            fmt: "jpeg" ou "png".
            quality: 0-1 (ignorado para PNG).

        Returns:
            Bytes codificados (vazio se o codec não produziu dados).
        """
        ...

    @abstractmethod
    def compress(self, data: bytes, options: CompressionOptions) -> bytes:
        """
        Recomprime para JPEG tentando ficar abaixo de options.max_size_bytes.

        Pode devolver um resultado ainda acima do orçamento; quem chama
        decide o que fazer. Levanta exceção se a imagem não decodifica.
        """
        ...
