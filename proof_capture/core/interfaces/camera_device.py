"""
Contract: Camera Device

Abre um stream de vídeo e entrega frames em resolução nativa.
Qualquer implementação (OpenCV, V4L2, dispositivo falso em testes)
deve respeitar este contrato.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import numpy as np

_MOBILE_UA = re.compile(r"Mobi|Android", re.IGNORECASE)


class FacingMode(str, Enum):
    ENVIRONMENT = "environment"   # câmera traseira
    USER = "user"                 # câmera frontal


def is_mobile(user_agent: str | None) -> bool:
    return bool(user_agent) and _MOBILE_UA.search(user_agent) is not None


def preferred_facing_mode(user_agent: str | None) -> FacingMode:
    """Traseira no celular (documento à frente), frontal no desktop."""
    return FacingMode.ENVIRONMENT if is_mobile(user_agent) else FacingMode.USER


@dataclass(frozen=True)
class CameraConstraints:
    facing_mode: FacingMode
    ideal_width: int = 1920
    ideal_height: int = 1080


class ICameraStream(ABC):
    """Stream ativo. Dono exclusivo: a sessão que o abriu."""

    @abstractmethod
    def read_frame(self) -> np.ndarray | None:
        """Frame atual (BGR, HxWx3) ou None se ainda não há frame."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Para todas as tracks. Deve ser idempotente."""
        ...


class ICameraDevice(ABC):
    """
    Port: Camera Device

    Responsável por adquirir a câmera. Falha de permissão ou
    dispositivo ausente deve levantar exceção em open().
    """

    @abstractmethod
    async def open(self, constraints: CameraConstraints) -> ICameraStream:
        """
        Abre a câmera.

        Args:
            constraints: Preferência de câmera e resolução ideal.

        Returns:
            ICameraStream pronto para leitura.
        """
        ...
