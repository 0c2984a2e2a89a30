from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Callable, Any, List

def ease_linear(t: float) -> float: return t
def ease_out_cubic(t: float) -> float: t = max(0.0, min(1.0, t)); return 1 - (1 - t) ** 3
def ease_in_out_sine(t: float) -> float: t = max(0.0, min(1.0, t)); return 0.5 - 0.5 * math.cos(math.pi * t)

@dataclass
class Tween:
    obj: Any
    attr: str
    start: float
    end: float
    duration: float
    ease: Callable[[float], float] = ease_out_cubic
    t: float = 0.0
    on_done: Callable[[], None] | None = None

    def update(self, dt: float) -> bool:
        self.t += max(0.0, dt)
        u = 1.0 if self.duration <= 0 else max(0.0, min(1.0, self.t / self.duration))
        setattr(self.obj, self.attr, self.start + (self.end - self.start) * self.ease(u))
        finished = (u >= 1.0)
        if finished and self.on_done:
            self.on_done()
        return finished

class Animator:
    def __init__(self):
        self._tweens: List[Tween] = []

    def add(self, tween: Tween) -> None:
        self._tweens.append(tween)

    def cancel(self, obj: Any) -> None:
        self._tweens[:] = [tw for tw in self._tweens if tw.obj is not obj]

    def busy(self) -> bool:
        return bool(self._tweens)

    def update(self, dt: float) -> None:
        # Snapshot first: on_done callbacks may add tweens
        current, self._tweens = self._tweens, []
        survivors = [tw for tw in current if not tw.update(dt)]
        self._tweens[:0] = survivors


class PageFlip:
    """
    Page-turn sweep: `progress` goes 0 -> 1 over `duration`, then the
    callback given to start() runs exactly once.
    """
    def __init__(self, animator: Animator, duration: float = 0.6) -> None:
        self.animator = animator
        self.duration = float(duration)
        self.progress = 0.0
        self.active = False

    def start(self, on_finished: Callable[[], None]) -> None:
        # Restarting drops the previous callback
        self.animator.cancel(self)
        self.progress = 0.0
        self.active = True

        def done() -> None:
            self.active = False
            on_finished()

        self.animator.add(Tween(self, "progress", 0.0, 1.0, self.duration, ease=ease_in_out_sine, on_done=done))
