"""
Errors do pipeline de captura.

Nenhum erro é re-tentado automaticamente: toda falha encerra
a tentativa atual.
"""

from enum import Enum

GENERIC_NETWORK_MESSAGE = "An unexpected error occurred. Please try again."


class ProofCaptureError(Exception):
    """Base de todos os erros do pipeline."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def display_message(self) -> str:
        return self.message


class ValidationError(ProofCaptureError):
    """Tipo/tamanho inválido. Local, nunca chega à rede."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


class CameraAccessError(ProofCaptureError):
    """Permissão negada ou dispositivo ausente."""


class ConversionError(ProofCaptureError):
    """Falha ao renderizar/combinar as páginas do PDF."""


class CompressionFailure(str, Enum):
    CODEC_FAILURE = "CODEC_FAILURE"
    EXCEEDS_AFTER_COMPRESSION = "EXCEEDS_AFTER_COMPRESSION"


class CompressionError(ProofCaptureError):
    """Codec falhou ou o resultado continua acima do orçamento."""

    def __init__(self, reason: CompressionFailure, message: str, size_bytes: int | None = None):
        super().__init__(message)
        self.reason = reason
        self.size_bytes = size_bytes


class NetworkError(ProofCaptureError):
    """Falha de upload/delete/config. Pode carregar a lista de erros do servidor."""

    def __init__(self, messages: list[str] | None = None, status_code: int | None = None,
                 fallback: str = GENERIC_NETWORK_MESSAGE):
        self.messages = [m for m in (messages or []) if m]
        self.status_code = status_code
        super().__init__(format_error_messages(self.messages) or fallback)


class ConfigMissingError(ProofCaptureError):
    """Nenhuma política de emissão para (doc_type, doc_subtype). Não fatal."""

    def __init__(self, doc_type: str, doc_subtype: str):
        super().__init__(f"No configuration found for {doc_type}/{doc_subtype}")
        self.doc_type = doc_type
        self.doc_subtype = doc_subtype


class ActionNotAllowedError(ProofCaptureError):
    """Ação bloqueada pelo estado atual do documento (ex: delete em PENDING_VERIFICATION)."""

    def __init__(self, action: str, doc_subtype: str, state: str | None):
        super().__init__(f"Cannot {action} '{doc_subtype}' while it is {state or 'loading'}")
        self.action = action
        self.doc_subtype = doc_subtype
        self.state = state


def format_error_messages(messages: list[str]) -> str:
    """Uma mensagem → ela mesma; várias → lista numerada, uma por linha."""
    if not messages:
        return ""
    if len(messages) == 1:
        return messages[0]
    return "\n".join(f"{i}. {m}" for i, m in enumerate(messages, start=1))
