"""Decision flow for a lead that checks in while already checked in.

The resolver only mediates the choice. Persisting the outcome is left to the
two callbacks, each invoked at most once per confirmed decision.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Tuple


class ResolverMode:
    """Enumeration of resolver states."""

    CHOOSING = "choose"
    NEW_MODEL = "new-model"
    CLOSED = "closed"


class ResolverStateError(RuntimeError):
    """Raised when an action is not available in the current mode."""


class EmptyModelNameError(ValueError):
    """Raised when a new model name is blank after trimming."""


@dataclass(frozen=True)
class ExistingCheckIn:
    lead_id: str
    name: str
    previous_model_name: str
    checked_in_at: datetime


RecheckInCallback = Callable[[], object]
CreateNewModelCallback = Callable[[str], object]

_TRANSITIONS: Dict[Tuple[str, str], str] = {
    (ResolverMode.CHOOSING, "recheck_in"): ResolverMode.CLOSED,
    (ResolverMode.CHOOSING, "choose_new_model"): ResolverMode.NEW_MODEL,
    (ResolverMode.NEW_MODEL, "confirm_new_model"): ResolverMode.CLOSED,
    (ResolverMode.NEW_MODEL, "back"): ResolverMode.CHOOSING,
}


class MultiModelResolver:
    """Two-mode dialog: re-check-in the existing model or register another one."""

    def __init__(
        self,
        existing: ExistingCheckIn,
        on_recheck_in: RecheckInCallback,
        on_create_new_model: CreateNewModelCallback,
    ) -> None:
        self.existing = existing
        self._on_recheck_in = on_recheck_in
        self._on_create_new_model = on_create_new_model
        self.mode = ResolverMode.CHOOSING
        self.draft_name = ""
        self.outcome: object = None

    @property
    def is_open(self) -> bool:
        return self.mode != ResolverMode.CLOSED

    @property
    def can_confirm(self) -> bool:
        return self.mode == ResolverMode.NEW_MODEL and bool(self.draft_name.strip())

    def summary(self) -> dict:
        return {
            "lead_id": self.existing.lead_id,
            "name": self.existing.name,
            "previous_model_name": self.existing.previous_model_name,
            "checked_in_at": self.existing.checked_in_at.isoformat(),
            "mode": self.mode,
        }

    def _advance(self, trigger: str) -> None:
        destination = _TRANSITIONS.get((self.mode, trigger))
        if destination is None:
            raise ResolverStateError(f"'{trigger}' is not allowed in mode '{self.mode}'")
        self.mode = destination
        if destination != ResolverMode.NEW_MODEL:
            self.draft_name = ""

    def recheck_in(self) -> object:
        if (self.mode, "recheck_in") not in _TRANSITIONS:
            raise ResolverStateError(f"'recheck_in' is not allowed in mode '{self.mode}'")
        self.outcome = self._on_recheck_in()
        self._advance("recheck_in")
        return self.outcome

    def choose_new_model(self) -> None:
        self._advance("choose_new_model")

    def update_name(self, text: str) -> None:
        if self.mode != ResolverMode.NEW_MODEL:
            raise ResolverStateError(f"'update_name' is not allowed in mode '{self.mode}'")
        self.draft_name = text or ""

    def confirm_new_model(self, name: str | None = None) -> object:
        if self.mode != ResolverMode.NEW_MODEL:
            raise ResolverStateError(f"'confirm_new_model' is not allowed in mode '{self.mode}'")
        if name is not None:
            self.draft_name = name
        trimmed = self.draft_name.strip()
        if not trimmed:
            raise EmptyModelNameError("model name is required")
        self.outcome = self._on_create_new_model(trimmed)
        self._advance("confirm_new_model")
        return self.outcome

    def back(self) -> None:
        self._advance("back")

    def close(self) -> None:
        self.mode = ResolverMode.CLOSED
        self.draft_name = ""
