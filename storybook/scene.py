from __future__ import annotations
from typing import Optional, Protocol
import pygame


class Scene(Protocol):
    """What the app loop drives: the title card or the open book."""
    def on_enter(self, prev: Optional["Scene"]) -> None: ...
    def on_exit(self, nxt: Optional["Scene"]) -> None: ...

    def update(self, dt: float) -> None: ...
    def draw(self, surface: pygame.Surface) -> None: ...
    def handle_event(self, e: pygame.event.Event) -> bool: ...


class SceneManager:
    """
    Holds the single scene on screen. The storybook only ever moves forward
    (title -> book), so there is no stack to pause or resume.
    `screen` follows the window; the app updates it on resize/fullscreen.
    """
    def __init__(self, screen: pygame.Surface) -> None:
        self.screen = screen
        self.current: Optional[Scene] = None
        self.request_quit = False

    def switch(self, scene: Scene) -> None:
        prev = self.current
        if prev is not None:
            prev.on_exit(scene)
        self.current = scene
        scene.on_enter(prev)

    def quit(self) -> None:
        self.request_quit = True

    # ----- loop -------------------------------------------------------------
    def handle_event(self, e: pygame.event.Event) -> bool:
        return bool(self.current.handle_event(e)) if self.current else False

    def update(self, dt: float) -> None:
        if self.current:
            self.current.update(dt)

    def draw(self) -> None:
        if self.current:
            self.current.draw(self.screen)
