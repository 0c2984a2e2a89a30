from __future__ import annotations
from dataclasses import dataclass
from collections import OrderedDict
from typing import Optional, Tuple
import pygame


@dataclass(frozen=True)
class FontKey:
    path: Optional[str]     # None = pygame's default font
    size: int
    italic: bool = False


class FontCache:
    """
    LRU of pygame fonts. Book pages draw mixed runs, so callers usually ask
    for a (regular, italic) pair at one size:

        regular, italic = fonts.pair(cfg.font_path, cfg.text_font_size)
    """

    def __init__(self, max_entries: int = 16) -> None:
        self._fonts: "OrderedDict[FontKey, pygame.font.Font]" = OrderedDict()
        self._max = max(2, int(max_entries))

    def get(self, path: Optional[str], size: int, *, italic: bool = False) -> pygame.font.Font:
        key = FontKey(path, max(1, int(size)), bool(italic))
        font = self._fonts.get(key)
        if font is None:
            font = pygame.font.Font(key.path, key.size)
            font.set_italic(key.italic)
            self._fonts[key] = font
            if len(self._fonts) > self._max:
                self._fonts.popitem(last=False)
        else:
            self._fonts.move_to_end(key)
        return font

    def pair(self, path: Optional[str], size: int) -> Tuple[pygame.font.Font, pygame.font.Font]:
        return self.get(path, size), self.get(path, size, italic=True)

    def __len__(self) -> int:
        return len(self._fonts)

    def clear(self) -> None:
        self._fonts.clear()
