from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence


def _format_snapshot(snapshot: Optional[Dict[str, Any]]) -> str:
    if not snapshot:
        return "{}"
    return "{" + ", ".join(f"{k}={v!r}" for k, v in snapshot.items()) + "}"


class StoryError(Exception):
    """
    Base class for every fatal story/engine error.
    Carries the node index and a context snapshot when they are known.
    """
    def __init__(self, message: str, *, node: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.node = node
        self.context = dict(context) if context is not None else None
        details = []
        if node is not None:
            details.append(f"node={node}")
        if context is not None:
            details.append(f"context={_format_snapshot(self.context)}")
        suffix = f" ({' '.join(details)})" if details else ""
        super().__init__(f"{message}{suffix}")
        self.message = message


class StoryConfigError(StoryError):
    """ The story graph is malformed. Raised by validation or at first traversal. """
    def __init__(self, message: str, *, node: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None,
                 issues: Sequence[Any] = ()) -> None:
        super().__init__(message, node=node, context=context)
        self.issues: List[Any] = list(issues)


class MissingNodeError(StoryConfigError):
    pass


class EmptyForkError(StoryConfigError):
    pass


class InvalidOperationError(StoryError):
    """ Operation called against the wrong node kind (or on a sealed graph). """


class ChoiceIndexError(InvalidOperationError, IndexError):
    pass


class UnreachableBranchError(StoryError):
    """ A context function hit a flag combination its author declared impossible. """


class InvalidTransitionError(StoryError):
    """ Lifecycle received an event its current phase does not accept (strict mode only). """
    def __init__(self, phase: Any, event: Any) -> None:
        super().__init__(f"Invalid state transition: ({phase}, {event})")
        self.phase = phase
        self.event = event
