from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class TextSpan:
    text: str
    emphasis: bool = False


def parse_emphasis(text: str, marker: str = "*") -> List[TextSpan]:
    """
    Split `text` on emphasis markers: "This *text* matters" gives
    [("This ", False), ("text", True), (" matters", False)].
    An unterminated marker emphasizes the rest of the string. Empty runs are dropped.
    """
    spans: List[TextSpan] = []
    current: List[str] = []
    inside = False
    for ch in text or "":
        if ch == marker:
            if current:
                spans.append(TextSpan("".join(current), inside))
                current = []
            inside = not inside
            continue
        current.append(ch)
    if current:
        spans.append(TextSpan("".join(current), inside))
    return spans


def plain_text(spans: Iterable[TextSpan]) -> str:
    return "".join(s.text for s in spans)
