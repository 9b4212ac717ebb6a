from __future__ import annotations

import pytest

from tamasprite.sprite_parser import (
    SpriteDecodeError,
    decode_palette,
    decode_pixels,
    decode_record,
    iter_decoded_sprites,
    scan_sprites,
)

from sprite_fixtures import BLACK, GREEN_KEY, PURE_BLUE, PURE_RED, WHITE, build_record, noise, pack_palette

TWO_COLOURS = [(10, 20, 30, 255), (40, 50, 60, 255)]


def _pixels(buffer: bytes):
    return [tuple(buffer[i:i + 4]) for i in range(0, len(buffer), 4)]


def test_half_byte_low_nibble_first() -> None:
    out = decode_pixels(TWO_COLOURS, b"\x01", half_byte_pixel=True)

    assert _pixels(out) == [TWO_COLOURS[1], TWO_COLOURS[0]]


def test_half_byte_stream_order() -> None:
    palette = decode_palette(pack_palette([BLACK, WHITE, PURE_RED, PURE_BLUE]))

    out = decode_pixels(palette, bytes((0x21, 0x03)), half_byte_pixel=True)

    assert _pixels(out) == [palette[1], palette[2], palette[3], palette[0]]


def test_full_byte_indices() -> None:
    palette = [(i, i, i, 255) for i in range(20)]

    out = decode_pixels(palette, bytes((19, 0, 7)), half_byte_pixel=False)

    assert _pixels(out) == [palette[19], palette[0], palette[7]]


def test_full_byte_out_of_range_index_rejects() -> None:
    palette = [(i, i, i, 255) for i in range(20)]

    with pytest.raises(SpriteDecodeError, match="invalid palette index"):
        decode_pixels(palette, bytes((3, 20, 1)), half_byte_pixel=False)


def test_half_byte_out_of_range_high_nibble_rejects() -> None:
    with pytest.raises(SpriteDecodeError, match="invalid palette index"):
        decode_pixels(TWO_COLOURS, b"\x20", half_byte_pixel=True)


def test_pixel_count_trims_pad_nibble() -> None:
    out = decode_pixels(TWO_COLOURS, b"\x10\x01", half_byte_pixel=True, pixel_count=3)

    assert _pixels(out) == [TWO_COLOURS[0], TWO_COLOURS[1], TWO_COLOURS[1]]


def test_pad_nibble_is_still_checked() -> None:
    with pytest.raises(SpriteDecodeError):
        decode_pixels(TWO_COLOURS, b"\x10\x51", half_byte_pixel=True, pixel_count=3)


def test_decode_record_builds_sprite() -> None:
    indices = [0, 1, 2, 1, 0, 2]
    dump = build_record(3, 2, [BLACK, WHITE, GREEN_KEY], indices) + noise(12)

    (record,) = list(scan_sprites(dump))
    sprite = decode_record(record)

    assert (sprite.offset, sprite.width, sprite.height) == (0, 3, 2)
    assert sprite.length == record.length
    assert sprite.pixel_count == 6
    assert [sprite.pixel(i) for i in range(6)] == [sprite.palette[i] for i in indices]
    assert sprite.palette[2] == (0, 255, 0, 255)


def test_rejected_sprite_is_absent_from_output() -> None:
    bad = build_record(2, 2, list(range(20)), [0, 1, 200, 3])
    good = build_record(1, 2, [WHITE], [0, 0])
    dump = noise(9) + bad + good + noise(10, seed=5)

    sprites = list(iter_decoded_sprites(dump))

    assert [s.offset for s in sprites] == [9 + len(bad)]
    assert sprites[0].pixel(1) == (255, 255, 255, 255)
