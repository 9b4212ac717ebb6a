# -*- coding: utf-8 -*-
import struct
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

# ヘッダ: width, height, 色数, マーカー(0, 1, 255)
HEADER_SIZE = 6
HEADER_MARKER = (0, 1, 255)
MAX_SPRITE_SIDE = 128
# ヘッダ + 最低1色分のパレット + 画素データ
MIN_RECORD_BYTES = 10
HALF_BYTE_MAX_COLORS = 16

Color = Tuple[int, int, int, int]


class SpriteDecodeError(ValueError):
    """スプライトとしてデコードできないレコード"""


# =====================
# ヘッダ判定
# =====================
@dataclass(frozen=True)
class SpriteHeader:
    width: int
    height: int
    color_count: int

    @property
    def half_byte_pixel(self) -> bool:
        # 16色以下なら1バイトに2画素（4bit）
        return self.color_count <= HALF_BYTE_MAX_COLORS

    @property
    def palette_size(self) -> int:
        return self.color_count * 2

    @property
    def header_size(self) -> int:
        return HEADER_SIZE + self.palette_size

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def pixel_byte_count(self) -> int:
        if self.half_byte_pixel:
            return (self.pixel_count + 1) // 2
        return self.pixel_count

    @property
    def record_length(self) -> int:
        return self.header_size + self.pixel_byte_count


def parse_header(data, offset: int = 0) -> Optional[SpriteHeader]:
    """offset位置がスプライトヘッダならSpriteHeader、そうでなければNone"""
    if offset < 0 or len(data) - offset < MIN_RECORD_BYTES:
        return None

    width = data[offset]
    height = data[offset + 1]
    color_count = data[offset + 2]

    if not (0 < width <= MAX_SPRITE_SIDE and 0 < height <= MAX_SPRITE_SIDE):
        return None
    if color_count == 0:
        return None
    if (data[offset + 3], data[offset + 4], data[offset + 5]) != HEADER_MARKER:
        return None

    return SpriteHeader(width=width, height=height, color_count=color_count)


@dataclass(frozen=True)
class RawRecord:
    offset: int
    length: int
    header: SpriteHeader
    # 元バッファへのビュー（コピーしない）。末尾で切れている場合はlengthより短い
    data: memoryview = field(repr=False, compare=False)

    @property
    def end(self) -> int:
        return self.offset + self.length

    @property
    def truncated(self) -> bool:
        return len(self.data) < self.length


def scan_sprites(data) -> Iterator[RawRecord]:
    """ダンプ全体を1バイトずつ走査し、スプライト候補のレコードを順に返す"""
    view = memoryview(data)
    total = len(view)
    offset = 0
    while offset < total:
        header = parse_header(view, offset)
        if header is None:
            offset += 1
            continue

        length = header.record_length
        yield RawRecord(
            offset=offset,
            length=length,
            header=header,
            data=view[offset:offset + length],
        )
        # デコードの成否に関係なくレコード全体を読み飛ばす
        offset += length


# =====================
# パレット・画素のデコード
# =====================
# 5bit/6bitの値を0-255に丸めて拡張（ちょうど.5になる値は存在しない）
_SCALE_5BIT = [round(v * 255 / 31) for v in range(32)]
_SCALE_6BIT = [round(v * 255 / 63) for v in range(64)]


def decode_color(color16: int) -> Color:
    """16bitビッグエンディアン値（上位から 青5, 緑6, 赤5）をRGBAに変換"""
    blue = _SCALE_5BIT[(color16 & 0xF800) >> 11]
    green = _SCALE_6BIT[(color16 & 0x07E0) >> 5]
    red = _SCALE_5BIT[color16 & 0x001F]
    return (red, green, blue, 255)


def decode_palette(data) -> List[Color]:
    count = len(data) // 2
    return [decode_color(word) for word in struct.unpack_from(f">{count}H", data)]


def decode_pixels(palette: List[Color], index_data, half_byte_pixel: bool,
                  pixel_count: Optional[int] = None) -> bytes:
    """パレットインデックス列をフラットなRGBAバッファに展開する"""
    colors = [bytes(c) for c in palette]
    limit = len(colors)
    pixels = bytearray()

    if half_byte_pixel:
        for i, b in enumerate(index_data):
            # 下位ニブルが先の画素
            for idx in (b & 0x0F, b >> 4):
                if idx >= limit:
                    raise SpriteDecodeError(
                        f"invalid palette index {idx} at byte {i} (palette has {limit} colors)")
                pixels += colors[idx]
    else:
        for i, idx in enumerate(index_data):
            if idx >= limit:
                raise SpriteDecodeError(
                    f"invalid palette index {idx} at byte {i} (palette has {limit} colors)")
            pixels += colors[idx]

    if pixel_count is not None:
        del pixels[pixel_count * 4:]
    return bytes(pixels)


@dataclass
class DecodedSprite:
    offset: int
    length: int
    width: int
    height: int
    pixels: bytes = field(repr=False)
    palette: List[Color] = field(default_factory=list, repr=False)

    @property
    def end(self) -> int:
        return self.offset + self.length

    @property
    def pixel_count(self) -> int:
        return len(self.pixels) // 4

    def pixel(self, index: int) -> Color:
        o = index * 4
        r, g, b, a = self.pixels[o:o + 4]
        return (r, g, b, a)


def decode_record(record: RawRecord, allow_truncated: bool = False) -> DecodedSprite:
    header = record.header
    data = record.data

    if record.truncated and not allow_truncated:
        raise SpriteDecodeError(
            f"record at 0x{record.offset:x} is truncated ({len(data)}/{record.length} bytes)")

    palette_end = header.header_size
    if len(data) < palette_end:
        raise SpriteDecodeError(f"palette of record at 0x{record.offset:x} is incomplete")

    palette = decode_palette(data[HEADER_SIZE:palette_end])
    pixels = decode_pixels(palette, data[palette_end:], header.half_byte_pixel,
                           header.pixel_count)

    return DecodedSprite(
        offset=record.offset,
        length=record.length,
        width=header.width,
        height=header.height,
        pixels=pixels,
        palette=palette,
    )


def iter_decoded_sprites(data, allow_truncated: bool = False) -> Iterator[DecodedSprite]:
    """デコードに成功したスプライトだけを走査順に返す"""
    for record in scan_sprites(data):
        try:
            sprite = decode_record(record, allow_truncated=allow_truncated)
        except SpriteDecodeError as e:
            logger.debug(f"候補 0x{record.offset:x}-0x{record.end - 1:x} を破棄: {e}")
            continue
        logger.debug(f"スプライト検出: 0x{sprite.offset:x} {sprite.width}x{sprite.height} "
                     f"({len(sprite.palette)}色)")
        yield sprite


# =====================
# ダンプ読み込み
# =====================
class TamaDumpReader:
    def __init__(self, file_path, allow_truncated=False):
        self.file_path = file_path
        self.allow_truncated = allow_truncated
        self.decoded = []  # DecodedSpriteのリスト
        self.sprites = []  # 各スプライトの情報（dict）

    def read_sprites(self, f):
        data = f.read()
        self.decoded = list(iter_decoded_sprites(data, allow_truncated=self.allow_truncated))

        self.sprites = []
        for i, sprite in enumerate(self.decoded):
            self.sprites.append({
                'index': i,
                'width': sprite.width,
                'height': sprite.height,
                'colors': len(sprite.palette),
                'data_ofs': sprite.offset,
                'data_len': sprite.length,
            })

        logger.info(f"{self.file_path}: {len(data)}バイト中に{len(self.sprites)}個のスプライト")
        return self.sprites

    def get_image(self, index):
        if index < 0 or index >= len(self.decoded):
            raise IndexError(f"スプライトインデックス{index}が範囲外です（スプライト数{len(self.decoded)}）")
        sprite = self.decoded[index]
        return sprite.pixels, sprite.width, sprite.height
