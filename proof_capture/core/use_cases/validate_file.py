"""
Use Case: Validate File

Guarda síncrona de tipo/tamanho antes de qualquer trabalho pesado.
Pura, sem efeitos colaterais.
"""

from dataclasses import dataclass
from typing import Protocol

from proof_capture.core.entities.artifact import MB
from proof_capture.core.entities.document import DocumentSubtypeConfig
from proof_capture.core.errors import ValidationError

PDF_MIME_TYPE = "application/pdf"

CODE_TYPE = "type"
CODE_SIZE = "size"

INVALID_TYPE_MESSAGE = "Invalid file type. Please upload an image or a PDF file."


class FileLike(Protocol):
    mime_type: str

    @property
    def size_bytes(self) -> int:
        ...


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    code: str | None = None
    message: str | None = None


def _format_mb(value: float) -> str:
    """5.0 → '5', 2.5 → '2.5'."""
    return f"{value:g}"


class FileValidator:
    """Aceita image/* ou application/pdf dentro do orçamento de bytes."""

    def __init__(self, max_file_size_bytes: int):
        self._max_file_size_bytes = max_file_size_bytes

    @property
    def max_file_size_bytes(self) -> int:
        return self._max_file_size_bytes

    def validate(
        self,
        file: FileLike,
        subtype_config: DocumentSubtypeConfig | None = None,
    ) -> ValidationResult:
        mime_type = (file.mime_type or "").lower()
        if not self._type_allowed(mime_type, subtype_config):
            return ValidationResult(valid=False, code=CODE_TYPE, message=INVALID_TYPE_MESSAGE)

        limit = self.limit_for(subtype_config)
        if file.size_bytes > limit:
            size_mb = file.size_bytes / MB
            message = (
                f"File size ({size_mb:.2f} MB) exceeds the maximum allowed size "
                f"of {_format_mb(limit / MB)} MB."
            )
            return ValidationResult(valid=False, code=CODE_SIZE, message=message)

        return ValidationResult(valid=True)

    def ensure_valid(self, file: FileLike, subtype_config: DocumentSubtypeConfig | None = None) -> None:
        """Mesma regra de validate(), levantando ValidationError."""
        result = self.validate(file, subtype_config)
        if not result.valid:
            raise ValidationError(result.code, result.message)

    def limit_for(self, subtype_config: DocumentSubtypeConfig | None) -> int:
        if subtype_config and subtype_config.max_file_size_bytes:
            return subtype_config.max_file_size_bytes
        return self._max_file_size_bytes

    @staticmethod
    def _type_allowed(mime_type: str, subtype_config: DocumentSubtypeConfig | None) -> bool:
        if not (mime_type.startswith("image/") or mime_type == PDF_MIME_TYPE):
            return False
        if subtype_config and subtype_config.allowed_mime_types:
            allowed = [m.lower() for m in subtype_config.allowed_mime_types]
            return any(
                mime_type == m or (m.endswith("/*") and mime_type.startswith(m[:-1]))
                for m in allowed
            )
        return True
