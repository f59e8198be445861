"""
Entity: Captured Artifact

Arquivo candidato ao upload, produzido por uma única tentativa
de captura (câmera, arquivo ou QR). Imutável: cada etapa do
pipeline devolve um novo artefato.
"""

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import PurePath

MB = 1024 * 1024


class SourceMethod(str, Enum):
    CAMERA = "camera"
    FILE = "file"
    QR = "qr"


@dataclass(frozen=True)
class CapturedArtifact:
    data: bytes
    mime_type: str
    origin_name: str
    source_method: SourceMethod = SourceMethod.FILE
    page_count: int = 1

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def size_mb(self) -> float:
        return self.size_bytes / MB

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf"

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def with_content(self, data: bytes, mime_type: str, extension: str) -> "CapturedArtifact":
        """Novo artefato com outro conteúdo; mantém o nome base."""
        stem = PurePath(self.origin_name).stem or self.origin_name
        return replace(self, data=data, mime_type=mime_type, origin_name=f"{stem}.{extension}")
