from __future__ import annotations
import math
import re
from typing import Callable, List, Optional, Sequence, Tuple

import pygame

from storybook.narrative.rich_text import TextSpan, parse_emphasis
from storybook.narrative.types import ChosenView, NodeView
from storybook.resources import load_image
from storybook.settings import BookCfg
from storybook.ui.anim import Animator, PageFlip
from storybook.ui.fonts import FontCache

_PAD = 20
_ROW_GAP = 10
_WS = re.compile(r"(\s+)")


class BookView:
    """
    Two-page book drawn with pygame; implements PresentationAdapter.

      - Left page: the beat's text (emphasis in italics), or the chosen answer.
      - Right page: the illustration, or the options for a fork.
      - A page-turn sweep plays between beats; its end calls back into the session.

    Everything shown for a beat is transient: erase() clears it.
    """

    def __init__(self, cfg: BookCfg, screen_rect: pygame.Rect, fonts: Optional[FontCache] = None) -> None:
        self.cfg = cfg
        self.fonts = fonts or FontCache()
        self.animator = Animator()
        self.flip = PageFlip(self.animator, cfg.page_flip_duration)

        self._node: Optional[NodeView] = None
        self._chosen: Optional[ChosenView] = None
        self._ended = False
        self._hover = -1
        self._choice_rects: List[pygame.Rect] = []
        self._restart_rect: Optional[pygame.Rect] = None

        self.left = pygame.Rect(0, 0, 0, 0)
        self.right = pygame.Rect(0, 0, 0, 0)
        self.on_resize(screen_rect)

    # ---------- PresentationAdapter ----------
    def show_node(self, view: NodeView) -> None:
        self._node = view
        self._chosen = None
        self._ended = False
        self._hover = -1
        self._layout_choices()

    def show_chosen(self, view: ChosenView) -> None:
        self._chosen = view
        self._choice_rects = []

    def erase(self) -> None:
        self._node = None
        self._chosen = None
        self._ended = False
        self._hover = -1
        self._choice_rects = []
        self._restart_rect = None

    def start_transition(self, on_finished: Callable[[], None]) -> None:
        self.flip.start(on_finished)

    def story_ended(self, view: Optional[NodeView]) -> None:
        if view is not None:
            self._node = view
        self._ended = True
        self._layout_restart()

    def update(self, dt: float) -> None:
        self.animator.update(dt)

    # ---------- input targets (see InputRouter) ----------
    def choice_at(self, pos: Tuple[int, int]) -> Optional[int]:
        for i, r in enumerate(self._choice_rects):
            if r.collidepoint(pos):
                return i
        return None

    def choice_count(self) -> int:
        return len(self._choice_rects)

    def selected_index(self) -> Optional[int]:
        return self._hover if 0 <= self._hover < len(self._choice_rects) else None

    def restart_at(self, pos: Tuple[int, int]) -> bool:
        return bool(self._ended and self._restart_rect and self._restart_rect.collidepoint(pos))

    def on_mouse_move(self, pos: Tuple[int, int]) -> None:
        idx = self.choice_at(pos)
        self._hover = -1 if idx is None else idx

    def move_selection(self, delta: int) -> None:
        n = len(self._choice_rects)
        if not n:
            return
        self._hover = 0 if self._hover < 0 else (self._hover + delta) % n

    # ---------- layout ----------
    def on_resize(self, screen_rect: pygame.Rect) -> None:
        w, h = screen_rect.size
        pad_x = int(w * 0.08)
        gap = 40
        page_h = int(h * 0.8)
        top = screen_rect.y + (h - page_h) // 2
        left_w = int((w - 2 * pad_x - gap) * 0.46)
        right_w = w - 2 * pad_x - gap - left_w
        self.left = pygame.Rect(screen_rect.x + pad_x, top, left_w, page_h)
        self.right = pygame.Rect(self.left.right + gap, top, right_w, page_h)
        self._layout_choices()
        if self._ended:
            self._layout_restart()

    def _inner(self, page: pygame.Rect) -> pygame.Rect:
        return page.inflate(-2 * _PAD, -2 * _PAD)

    def _layout_choices(self) -> None:
        self._choice_rects = []
        if not self._node or not self._node.is_fork or self._chosen:
            return
        n = len(self._node.choices)
        inner = self._inner(self.right)
        row_h = max(1, (inner.h - _ROW_GAP * (n - 1)) // max(1, n))
        for i in range(n):
            self._choice_rects.append(pygame.Rect(inner.x, inner.y + i * (row_h + _ROW_GAP), inner.w, row_h))

    def _layout_restart(self) -> None:
        font = self.fonts.get(self.cfg.font_path, self.cfg.choice_font_size)
        w, h = font.size(self._restart_label())
        inner = self._inner(self.right)
        self._restart_rect = pygame.Rect(inner.centerx - w // 2 - 8, inner.bottom - h - 8, w + 16, h + 8)

    def _restart_label(self) -> str:
        return "Read it again"

    # ---------- drawing ----------
    def draw(self, surface: pygame.Surface) -> None:
        for page in (self.left, self.right):
            pygame.draw.rect(surface, self.cfg.page_rgb, page, border_radius=6)

        if self._chosen is not None:
            self._draw_chosen(surface, self._chosen)
        elif self._node is not None:
            self._draw_spans(surface, self._node.spans, self._inner(self.left), self.cfg.text_font_size)
            if self._node.is_fork:
                self._draw_choices(surface, self._node)
            elif self._node.extra is not None:
                self._draw_extra(surface, self._node)
        if self._ended:
            self._draw_end(surface)
        if self.flip.active:
            self._draw_flip(surface, self.flip.progress)

    def _draw_spans(self, surface: pygame.Surface, spans: Sequence[TextSpan], rect: pygame.Rect,
                    size: int, rgb: Optional[Tuple[int, int, int]] = None) -> int:
        """ Word-wrap styled runs into rect; returns the y below the last line. """
        regular, italic = self.fonts.pair(self.cfg.font_path, size)
        ink = rgb or self.cfg.ink_rgb
        line_h = regular.get_linesize()
        x, y = rect.x, rect.y
        for span in spans:
            font = italic if span.emphasis else regular
            for piece in _WS.split(span.text):
                if not piece:
                    continue
                if piece.isspace():
                    breaks = piece.count("\n")
                    if breaks:
                        x, y = rect.x, y + line_h * breaks
                    elif x > rect.x:
                        x += font.size(piece)[0]
                    continue
                w = font.size(piece)[0]
                if x + w > rect.right and x > rect.x:
                    x, y = rect.x, y + line_h
                if y + line_h > rect.bottom:
                    return y
                surface.blit(font.render(piece, True, ink), (x, y))
                x += w
        return y + line_h

    def _draw_extra(self, surface: pygame.Surface, node: NodeView) -> None:
        inner = self._inner(self.right)
        extra = node.extra
        y = inner.y
        if extra.secondary_text:
            y = self._draw_spans(surface, parse_emphasis(extra.secondary_text), inner,
                                 self.cfg.choice_font_size) + _ROW_GAP
        if extra.illustration:
            box = pygame.Rect(inner.x, y, inner.w, max(1, inner.bottom - y))
            img = load_image(extra.illustration, max_size=box.size)
            surface.blit(img, img.get_rect(center=box.center))
        for i, deco in enumerate(extra.decorations):
            img = load_image(deco, max_size=(64, 64))
            corner = self.right.topright if i % 2 == 0 else self.right.bottomleft
            surface.blit(img, img.get_rect(center=corner))

    def _draw_choices(self, surface: pygame.Surface, node: NodeView) -> None:
        size = self.cfg.choice_font_size if len(node.choices) < 3 else max(12, self.cfg.choice_font_size - 4)
        for choice, row in zip(node.choices, self._choice_rects):
            if choice.index == self._hover:
                self._fill_alpha(surface, row, self.cfg.highlight_rgba)
            pygame.draw.rect(surface, self.cfg.ink_rgb, row, width=2, border_radius=4)
            text_rect = row.inflate(-12, -12)
            if choice.illustration:
                thumb = load_image(choice.illustration, max_size=(text_rect.h, text_rect.h))
                surface.blit(thumb, thumb.get_rect(midleft=text_rect.midleft))
                text_rect = pygame.Rect(text_rect.x + thumb.get_width() + 10, text_rect.y,
                                        max(1, text_rect.w - thumb.get_width() - 10), text_rect.h)
            self._draw_spans(surface, parse_emphasis(choice.text), text_rect, size)

    def _draw_chosen(self, surface: pygame.Surface, chosen: ChosenView) -> None:
        inner = self._inner(self.left)
        self._fill_alpha(surface, inner.inflate(8, 8), self.cfg.highlight_rgba)
        y = self._draw_spans(surface, parse_emphasis(chosen.text), inner, self.cfg.text_font_size)
        if chosen.additional_text:
            rest = pygame.Rect(inner.x, y + _ROW_GAP, inner.w, max(1, inner.bottom - y - _ROW_GAP))
            self._draw_spans(surface, parse_emphasis(chosen.additional_text), rest, self.cfg.choice_font_size)
        if chosen.illustration:
            box = self._inner(self.right)
            img = load_image(chosen.illustration, max_size=box.size)
            surface.blit(img, img.get_rect(center=box.center))

    def _draw_end(self, surface: pygame.Surface) -> None:
        if self._restart_rect is None:
            self._layout_restart()
        title = self.fonts.get(self.cfg.font_path, self.cfg.text_font_size + 12, italic=True)
        label = title.render("The End", True, self.cfg.ink_rgb)
        surface.blit(label, label.get_rect(midbottom=(self._restart_rect.centerx, self._restart_rect.top - 8)))
        font = self.fonts.get(self.cfg.font_path, self.cfg.choice_font_size)
        pygame.draw.rect(surface, self.cfg.ink_rgb, self._restart_rect, width=2, border_radius=4)
        text = font.render(self._restart_label(), True, self.cfg.ink_rgb)
        surface.blit(text, text.get_rect(center=self._restart_rect.center))

    def _draw_flip(self, surface: pygame.Surface, progress: float) -> None:
        # The right page swings around the spine onto the left page
        spine = (self.left.right + self.right.left) // 2
        reach = math.cos(math.pi * max(0.0, min(1.0, progress)))
        if reach >= 0:
            w = int((self.right.right - spine) * reach)
            rect = pygame.Rect(spine, self.right.y, max(1, w), self.right.h)
        else:
            w = int((spine - self.left.left) * -reach)
            rect = pygame.Rect(spine - w, self.left.y, max(1, w), self.left.h)
        shade = tuple(max(0, c - 25) for c in self.cfg.page_rgb)
        pygame.draw.rect(surface, shade, rect)
        pygame.draw.line(surface, self.cfg.ink_rgb, (spine, rect.top), (spine, rect.bottom), 2)

    @staticmethod
    def _fill_alpha(surface: pygame.Surface, rect: pygame.Rect, rgba: Tuple[int, int, int, int]) -> None:
        temp = pygame.Surface(rect.size, pygame.SRCALPHA)
        temp.fill(rgba)
        surface.blit(temp, rect.topleft)
