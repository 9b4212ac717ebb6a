from __future__ import annotations

import pytest

from tamasprite.sprite_parser import decode_color, decode_palette

from sprite_fixtures import GREEN_KEY, PURE_BLUE, PURE_RED, pack_palette


def test_max_blue_word() -> None:
    assert decode_palette(b"\xf8\x00") == [(0, 0, 255, 255)]


@pytest.mark.parametrize(
    ("word", "expected"),
    [
        (0x0000, (0, 0, 0, 255)),
        (0xFFFF, (255, 255, 255, 255)),
        (PURE_BLUE, (0, 0, 255, 255)),
        (PURE_RED, (255, 0, 0, 255)),
        (GREEN_KEY, (0, 255, 0, 255)),
    ],
)
def test_primary_colours(word: int, expected) -> None:
    assert decode_color(word) == expected


# Expected 8-bit values for 5-bit and 6-bit channel inputs.
@pytest.mark.parametrize(
    ("value", "expected"),
    [(1, 8), (2, 16), (15, 123), (16, 132), (30, 247), (31, 255)],
)
def test_five_bit_channel_scaling(value: int, expected: int) -> None:
    red, _, _, _ = decode_color(value)
    _, _, blue, _ = decode_color(value << 11)

    assert red == expected
    assert blue == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1, 4), (2, 8), (21, 85), (31, 125), (32, 130), (42, 170), (62, 251), (63, 255)],
)
def test_six_bit_channel_scaling(value: int, expected: int) -> None:
    assert decode_color(value << 5) == (0, expected, 0, 255)


def test_palette_keeps_word_order() -> None:
    words = [0x0000, PURE_RED, GREEN_KEY, PURE_BLUE, 0x1234]

    palette = decode_palette(pack_palette(words))

    assert len(palette) == len(words)
    assert palette[:4] == [
        (0, 0, 0, 255),
        (255, 0, 0, 255),
        (0, 255, 0, 255),
        (0, 0, 255, 255),
    ]
    # 0x1234 -> blue 2, green 17, red 20
    assert palette[4] == (165, 69, 16, 255)


def test_palette_is_deterministic() -> None:
    data = pack_palette(range(0, 0x10000, 997))

    assert decode_palette(data) == decode_palette(bytes(data))


def test_palette_edge_sizes() -> None:
    assert decode_palette(b"") == []
    assert decode_palette(b"\xf8\x00\x07") == [(0, 0, 255, 255)]
    assert decode_palette(memoryview(b"\x00\x1f")) == [(255, 0, 0, 255)]
