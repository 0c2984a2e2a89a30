# dragonbook/scenes/book.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional
import pygame

from storybook.scene import Scene, SceneManager
from storybook.settings import AppCfg
from storybook.resources import set_assets_root
from storybook.session import GameSession
from storybook.input_router import InputRouter
from storybook.ui.book_view import BookView
from storybook.ui.fonts import FontCache

from dragonbook.content import load_configured_story

logger = logging.getLogger(__name__)


class BookScene(Scene):
    """
    Storybook play scene.
    - Loads and validates the configured story (bundled or YAML)
    - Builds the two-page BookView and the GameSession that drives it
    - Routes keys/clicks through InputRouter so only meaningful presses
      become lifecycle events
    """

    def __init__(self, mgr: SceneManager, cfg: AppCfg, fonts: Optional[FontCache] = None):
        self.mgr = mgr
        self.cfg = cfg
        self.screen = mgr.screen

        # ---- story ---------------------------------------------------------
        if cfg.story.source != "builtin":
            assets = Path(cfg.story.source).resolve().parent / "assets"
            if assets.is_dir():
                set_assets_root(assets)
        self.graph = load_configured_story(cfg.story)
        logger.info("Loaded story %r (%d pages)", self.graph.title, len(self.graph))

        # ---- view + session --------------------------------------------------
        self.view = BookView(cfg.book, self.screen.get_rect(), fonts=fonts)
        self.session = GameSession(self.graph, self.view, strict=cfg.book.strict_transitions)
        self.router = InputRouter(
            advance_keys=cfg.input.advance_keys,
            restart_keys=cfg.input.restart_keys,
            targets=self.view,
        )

    # --- lifecycle ---
    def on_enter(self, prev: Optional[Scene]) -> None:
        pass

    def on_exit(self, nxt: Optional[Scene]) -> None:
        pass

    # --- loop ---
    def handle_event(self, e: pygame.event.Event) -> bool:
        if e.type == pygame.VIDEORESIZE:
            self.screen = self.mgr.screen
            self.view.on_resize(self.screen.get_rect())
            return True

        if e.type == pygame.MOUSEMOTION:
            self.view.on_mouse_move(e.pos)
            return False

        if e.type == pygame.KEYDOWN:
            if e.key == pygame.K_ESCAPE:
                self.mgr.quit()
                return True
            if e.key in (pygame.K_UP, pygame.K_DOWN):
                self.view.move_selection(-1 if e.key == pygame.K_UP else 1)
                return True
            event = self.router.on_key(pygame.key.name(e.key), self.session.phase)
            if event is not None:
                self.session.post(event)
                return True
            return False

        if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            event = self.router.on_click(e.pos, self.session.phase)
            if event is not None:
                self.session.post(event)
                return True
        return False

    def update(self, dt: float) -> None:
        self.session.update(dt)

    def draw(self, surface: pygame.Surface) -> None:
        self.view.draw(surface)
