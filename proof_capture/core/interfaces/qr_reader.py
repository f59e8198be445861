"""
Contract: QR Code Reader

Decodifica um QR em um único frame. O algoritmo de decodificação
é externo (OpenCV, zbar, ...); o pipeline só consome este contrato.
"""

from abc import ABC, abstractmethod

import numpy as np


class IQRCodeReader(ABC):
    """Port: QR Code Reader"""

    @abstractmethod
    def decode(self, frame: np.ndarray) -> str | None:
        """
        Tenta decodificar um QR no frame.

        Args:
            frame: Imagem BGR (já recortada na região de scan).

        Returns:
            Texto decodificado, ou None se não houver código no frame.
        """
        ...
