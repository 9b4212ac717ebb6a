# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Tuple

from PIL import Image

from .sprite_parser import DecodedSprite

TRANSPARENT = (0, 0, 0, 0)


def is_color_key(r: int, g: int, b: int, a: int) -> bool:
    """透過色（緑: R=0, G=255, 不透明）かどうか。青は無視"""
    return r == 0 and g == 255 and a == 255


@dataclass
class Raster:
    offset: int
    length: int
    width: int
    height: int
    pixels: bytes = field(repr=False)

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"({x}, {y}) is outside {self.width}x{self.height}")
        o = (y * self.width + x) * 4
        r, g, b, a = self.pixels[o:o + 4]
        return (r, g, b, a)

    def to_image(self) -> Image.Image:
        return Image.frombytes('RGBA', self.size, self.pixels)


def composite_sprite(sprite: DecodedSprite, preserve_color_key_alpha: bool = False) -> Raster:
    """フラットなRGBAバッファを width x height のラスタに配置する"""
    w, h = sprite.width, sprite.height
    src = sprite.pixels
    available = len(src) // 4
    raster = bytearray(w * h * 4)

    for y in range(h):
        base = y * w
        for x in range(w):
            c = base + x
            if c >= available:
                # データが足りない部分は透明な黒のまま
                continue
            o = c * 4
            r, g, b, a = src[o:o + 4]
            if not preserve_color_key_alpha and is_color_key(r, g, b, a):
                a = 0
            raster[o:o + 4] = bytes((r, g, b, a))

    return Raster(
        offset=sprite.offset,
        length=sprite.length,
        width=w,
        height=h,
        pixels=bytes(raster),
    )
