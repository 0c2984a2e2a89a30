from __future__ import annotations
from typing import Iterable, Optional, Protocol, Tuple

from storybook.lifecycle import AdvancePressed, ChoicePressed, Phase, RestartPressed

# Minimal protocols, no pygame import here
class _HasTargets(Protocol):
    def choice_at(self, pos: Tuple[int, int]) -> Optional[int]: ...
    def choice_count(self) -> int: ...
    def selected_index(self) -> Optional[int]: ...
    def restart_at(self, pos: Tuple[int, int]) -> bool: ...


class InputRouter:
    """
    Central gatekeeper for 'what does this press mean right now?'

    Rules:
      - CHOOSING: digit keys 1..9 or a click on an option pick it; an advance
        key picks the hovered/selected option.
      - CHOSEN / SHOWING_SIMPLE: an advance key or any click turns the page.
      - END: a restart key or a click on the restart label starts over.
      - Anything else (including TRANSITIONING) produces no event.

    Key names are pygame's names ("space", "return", "r", "1").
    """
    def __init__(
        self,
        *,
        advance_keys: Iterable[str] = ("space", "return"),
        restart_keys: Iterable[str] = ("r",),
        targets: Optional[_HasTargets] = None,
    ) -> None:
        self.advance_keys = {k.lower() for k in advance_keys}
        self.restart_keys = {k.lower() for k in restart_keys}
        self.targets = targets

    # --- public API ---------------------------------------------------------
    def on_key(self, key_name: str, phase: Phase) -> Optional[object]:
        key = (key_name or "").lower()
        if phase is Phase.END:
            return RestartPressed() if key in self.restart_keys else None
        if phase is Phase.CHOOSING:
            idx = self._digit(key)
            if idx is not None:
                return ChoicePressed(idx) if idx < self._choice_count() else None
            if key in self.advance_keys and self.targets is not None:
                sel = self.targets.selected_index()
                return ChoicePressed(sel) if sel is not None else None
            return None
        if phase in (Phase.CHOSEN, Phase.SHOWING_SIMPLE) and key in self.advance_keys:
            return AdvancePressed()
        return None

    def on_click(self, pos: Tuple[int, int], phase: Phase) -> Optional[object]:
        if phase is Phase.CHOOSING:
            idx = self.targets.choice_at(pos) if self.targets is not None else None
            return ChoicePressed(idx) if idx is not None else None
        if phase in (Phase.CHOSEN, Phase.SHOWING_SIMPLE):
            return AdvancePressed()
        if phase is Phase.END and self.targets is not None and self.targets.restart_at(pos):
            return RestartPressed()
        return None

    # --- helpers ------------------------------------------------------------
    def _choice_count(self) -> int:
        return self.targets.choice_count() if self.targets is not None else 0

    @staticmethod
    def _digit(key: str) -> Optional[int]:
        # "1".."9" and keypad "[1]".."[9]"
        k = key.strip("[]")
        if len(k) == 1 and k in "123456789":
            return int(k) - 1
        return None
