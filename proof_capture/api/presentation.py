"""
Mapeamento estado → ícone / cor / rótulo.

Só apresentação: o estado vem sempre do DocumentStatusResolver.
"""

from dataclasses import dataclass

from proof_capture.core.entities.display_state import DocumentDisplayState as State
from proof_capture.core.entities.display_state import DocumentStatus

COLOR_ERROR = "#C03744"
COLOR_PENDING = "#FF9800"
COLOR_SUCCESS = "#0B7B69"


@dataclass(frozen=True)
class Presentation:
    icon: str | None
    color: str | None
    label_key: str


_PRESENTATIONS: dict[State, Presentation] = {
    State.INCOMPLETE: Presentation(None, None, "INCOMPLETE"),
    State.EXPIRED: Presentation("close-circle", COLOR_ERROR, "EXPIRED"),
    State.PENDING_VERIFICATION: Presentation("clock", COLOR_PENDING, "PENDING_VERIFICATION"),
    State.REVOKED: Presentation("warning", COLOR_ERROR, "REVOKED"),
    State.DELETED: Presentation("warning", COLOR_ERROR, "DELETED"),
    State.AVAILABLE: Presentation("check-circle", COLOR_SUCCESS, "AVAILABLE"),
    State.VERIFIED: Presentation("check-circle", COLOR_SUCCESS, "VERIFIED"),
    State.ISSUED: Presentation("check-circle", COLOR_SUCCESS, "ISSUED"),
}

LOADING = Presentation(None, None, "LOADING")


def present(status: DocumentStatus) -> Presentation:
    if status.is_provisional:
        return LOADING
    return _PRESENTATIONS[status.state]
