"""
Entity: Document Display State

Estado de exibição de um documento + ações permitidas.
É a única saída do resolver de status; camadas de apresentação
só mapeiam o estado para ícone/cor/rótulo.
"""

from dataclasses import dataclass
from enum import Enum


class DocumentDisplayState(str, Enum):
    INCOMPLETE = "INCOMPLETE"
    AVAILABLE = "AVAILABLE"
    VERIFIED = "VERIFIED"
    ISSUED = "ISSUED"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    REVOKED = "REVOKED"
    DELETED = "DELETED"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class DocumentStatus:
    state: DocumentDisplayState | None    # None = política ainda carregando
    can_preview: bool
    can_delete: bool
    can_reupload: bool

    @classmethod
    def of(cls, state: DocumentDisplayState, preview: bool, delete: bool, reupload: bool) -> "DocumentStatus":
        return cls(state=state, can_preview=preview, can_delete=delete, can_reupload=reupload)

    @classmethod
    def provisional(cls) -> "DocumentStatus":
        """Enquanto a política carrega, nenhuma ação fica habilitada."""
        return cls(state=None, can_preview=False, can_delete=False, can_reupload=False)

    @property
    def is_provisional(self) -> bool:
        return self.state is None

    def actions(self) -> dict[str, bool]:
        return {
            "preview": self.can_preview,
            "delete": self.can_delete,
            "reupload": self.can_reupload,
        }
