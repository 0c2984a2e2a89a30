from __future__ import annotations

import logging
import sys
from typing import Optional

import pygame

from storybook.errors import StoryError
from storybook.resources import after_display_init
from storybook.scene import SceneManager
from storybook.settings import AppCfg, load_settings

from dragonbook.scenes.title import TitleScene

logger = logging.getLogger(__name__)


def configure_logging(cfg: AppCfg) -> None:
    logging.basicConfig(level=getattr(logging, cfg.logging.level, logging.INFO),
                        format=cfg.logging.format)


class GameApp:
    """
    Minimal app shell that delegates input/update/draw to the active scene
    via SceneManager. It keeps global concerns (window init, fps, resize,
    fullscreen, quitting on fatal story errors).
    """

    def __init__(self, cfg: AppCfg):
        self.cfg = cfg
        pygame.init()
        pygame.display.set_caption(cfg.window.title)

        self._flags = pygame.RESIZABLE | pygame.DOUBLEBUF
        self.screen = pygame.display.set_mode(
            (int(cfg.window.width), int(cfg.window.height)),
            flags=self._flags,
        )
        after_display_init()

        self.clock = pygame.time.Clock()
        self.running = True

        self.scenes = SceneManager(self.screen)
        self.scenes.switch(TitleScene(self.scenes, cfg))

    # ------------------------------------------------------------------ #
    # Main loop
    # ------------------------------------------------------------------ #
    def run(self) -> int:
        try:
            self._loop()
        except StoryError:
            # Content-authoring bug: hard stop with the node/context diagnostics
            logger.exception("Fatal story error")
            return 1
        finally:
            pygame.quit()
        return 0

    def _loop(self) -> None:
        while self.running and not self.scenes.request_quit:
            dt = self.clock.tick(self.cfg.fps) / 1000.0

            # ---- event pump -------------------------------------------------
            for e in pygame.event.get():
                if e.type == pygame.QUIT:
                    self.running = False
                    break

                if e.type == pygame.VIDEORESIZE:
                    self._resize_to(e.w, e.h)
                    self.scenes.handle_event(e)
                    continue

                if self.scenes.handle_event(e):
                    continue

                # Global hotkeys
                if e.type == pygame.KEYDOWN:
                    if e.key == pygame.K_F11:
                        self._toggle_fullscreen()
                        continue
                    if (e.key == pygame.K_q) and (pygame.key.get_mods() & pygame.KMOD_CTRL):
                        self.running = False
                        continue

            # ---- update/draw -----------------------------------------------
            self.scenes.update(dt)
            self.screen.fill(self.cfg.window.bg_rgb)
            self.scenes.draw()
            pygame.display.flip()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _resize_to(self, w: int, h: int) -> None:
        self.screen = pygame.display.set_mode((max(1, int(w)), max(1, int(h))), flags=self._flags)
        self.scenes.screen = self.screen

    def _toggle_fullscreen(self) -> None:
        is_full = bool(self.screen.get_flags() & pygame.FULLSCREEN)
        if is_full:
            self._flags = pygame.RESIZABLE | pygame.DOUBLEBUF
            size = (int(self.cfg.window.width), int(self.cfg.window.height))
        else:
            self._flags = pygame.FULLSCREEN | pygame.DOUBLEBUF
            size = (0, 0)
        self.screen = pygame.display.set_mode(size, flags=self._flags)
        self.scenes.screen = self.screen
        self.scenes.handle_event(pygame.event.Event(pygame.VIDEORESIZE, w=self.screen.get_width(),
                                                    h=self.screen.get_height(), size=self.screen.get_size()))


def main(argv: Optional[list] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    cfg = load_settings(args[0]) if args else load_settings()
    configure_logging(cfg)
    return GameApp(cfg).run()
