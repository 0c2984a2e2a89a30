from __future__ import annotations
from typing import Optional
import pygame
from storybook.scene import Scene, SceneManager
from storybook.settings import AppCfg
from storybook.ui.fonts import FontCache
from dragonbook.scenes.book import BookScene


class TitleScene(Scene):
    def __init__(self, mgr: SceneManager, cfg: AppCfg, fonts: FontCache | None = None):
        self.mgr = mgr
        self.cfg = cfg
        self.fonts = fonts or FontCache()
        self.font = self.fonts.get(cfg.book.font_path, 64, italic=True)
        self.small = self.fonts.get(cfg.book.font_path, 26)
        self.blink = 0.0

    # --- lifecycle ---
    def on_enter(self, prev: Optional[Scene]) -> None:
        pass

    def on_exit(self, nxt: Optional[Scene]) -> None:
        pass

    # --- loop ---
    def handle_event(self, e: pygame.event.Event) -> bool:
        if e.type == pygame.KEYDOWN and e.key != pygame.K_F11:
            # Any key opens the book
            self.mgr.switch(BookScene(self.mgr, self.cfg, fonts=self.fonts))
            return True
        if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            self.mgr.switch(BookScene(self.mgr, self.cfg, fonts=self.fonts))
            return True
        return False

    def update(self, dt: float) -> None:
        self.blink = (self.blink + dt) % 1.2

    def draw(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        title = self.font.render(self.cfg.window.title, True, self.cfg.book.page_rgb)
        tip = self.small.render("Press any key to open the book", True, (200, 186, 160))

        surface.blit(title, title.get_rect(center=(w//2, h//2 - 40)))
        # soft blink
        if self.blink < 0.8:
            surface.blit(tip, tip.get_rect(center=(w//2, h//2 + 40)))
