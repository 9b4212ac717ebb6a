# -*- coding: utf-8 -*-
"""TamaSpriteDumper.py

TamaSpriteDumper - たまごっち等のメモリダンプからスプライトを抽出するツール

機能:
 - ダンプ全体をバイト単位で走査し、スプライトヘッダ (w, h, 色数, 0, 1, 255) を検出
 - BGR565パレット / 4bit・8bitインデックス画素のデコード
 - 緑 (R=0, G=255) を透過色として扱う（--raw-alpha で無効化）
 - PNG出力（連番、任意でアドレス範囲付きファイル名）

使用例:
    # コマンドライン
    python TamaSpriteDumper.py -i dump.bin -o out -a

    # 他のコードから使用
    from TamaSpriteDumper import TamaDumpAPI
    info = TamaDumpAPI.get_all_sprites_info("dump.bin")
    img = TamaDumpAPI.extract_sprite_image("dump.bin", 0)

クラス構成:
 - TamaDumpConfig: 設定管理
 - SpriteRenderer: スプライト → ラスタ / PIL画像
 - TamaDumpAPI: ヘッドレス用API
"""

from __future__ import annotations
import sys
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass

from PIL import Image

from tamasprite.log import setup_logging, get_logger
from tamasprite.sprite_parser import TamaDumpReader, DecodedSprite, iter_decoded_sprites
from tamasprite.compositor import Raster, composite_sprite
from tamasprite.exporter import normalize_output_dir, export_rasters, save_raster

logger = get_logger(__name__)


@dataclass
class TamaDumpConfig:
    """TamaSpriteDumper設定クラス"""
    # 入出力
    input_path: str = ""
    output_dir: str = "."

    # 出力設定
    raw_alpha: bool = False           # 透過色（緑）をそのまま残す
    filename_address: bool = False    # ファイル名にアドレス範囲を付ける

    # 走査設定
    skip_truncated: bool = True       # ダンプ末尾で切れたレコードは破棄

    # ログ設定
    log_level: str = "INFO"
    debug_mode: bool = False


# 設定エイリアス
Config = TamaDumpConfig


class SpriteRenderer:
    """スプライトのラスタ化処理クラス"""

    def __init__(self, config: TamaDumpConfig):
        self.config = config

    def render_sprite(self, sprite: DecodedSprite) -> Raster:
        raster = composite_sprite(sprite, preserve_color_key_alpha=self.config.raw_alpha)
        if self.config.debug_mode:
            missing = sprite.width * sprite.height - sprite.pixel_count
            if missing > 0:
                logger.debug(f"0x{sprite.offset:x}: {missing}画素不足、透明で補完")
        return raster

    def render_image(self, sprite: DecodedSprite) -> Image.Image:
        return self.render_sprite(sprite).to_image()

    def render_all(self, sprites) -> List[Raster]:
        return [self.render_sprite(s) for s in sprites]


def dump_sprites(config: TamaDumpConfig) -> List[Path]:
    """ダンプを読み込み、検出したスプライトをすべてPNGに書き出す"""
    out_dir = normalize_output_dir(config.output_dir)

    with open(config.input_path, 'rb') as f:
        data = f.read()
    logger.info(f"ダンプ読み込み: {config.input_path} ({len(data)}バイト)")

    sprites = list(iter_decoded_sprites(data, allow_truncated=not config.skip_truncated))
    renderer = SpriteRenderer(config)
    rasters = renderer.render_all(sprites)

    written = export_rasters(rasters, out_dir, with_address=config.filename_address)
    logger.info(f"{len(written)}個のスプライトを出力しました")
    return written


# ===============================
# Library API Methods
# ===============================

class TamaDumpAPI:
    """
    High-level API for headless sprite extraction
    """

    @staticmethod
    def create_headless_reader(file_path, allow_truncated=False):
        """
        Scan a dump file and decode every sprite in it.

        Args:
            file_path (str): Path to dump file
            allow_truncated (bool): Decode records cut off by the end of the dump

        Returns:
            TamaDumpReader: reader with ``sprites`` and ``decoded`` filled in
        """
        reader = TamaDumpReader(file_path, allow_truncated=allow_truncated)
        with open(file_path, 'rb') as f:
            reader.read_sprites(f)
        return reader

    @staticmethod
    def get_sprite_info(file_path, sprite_index):
        reader = TamaDumpAPI.create_headless_reader(file_path)

        if sprite_index < 0 or sprite_index >= len(reader.sprites):
            raise IndexError(f"Sprite index {sprite_index} out of range")

        return dict(reader.sprites[sprite_index])

    @staticmethod
    def get_all_sprites_info(file_path):
        reader = TamaDumpAPI.create_headless_reader(file_path)
        return [dict(s) for s in reader.sprites]

    @staticmethod
    def extract_sprite_image(file_path, sprite_index, output_path=None, raw_alpha=False):
        """
        Extract a sprite as an image.

        Args:
            file_path (str): Path to dump file
            sprite_index (int): Index of the sprite
            output_path (str, optional): Output PNG path. If None, returns the image
            raw_alpha (bool): Keep the green color key opaque

        Returns:
            PIL.Image.Image or bool: image if output_path is None,
                                     True once the file is written
        """
        reader = TamaDumpAPI.create_headless_reader(file_path)

        if sprite_index < 0 or sprite_index >= len(reader.decoded):
            raise IndexError(f"Sprite index {sprite_index} out of range")

        renderer = SpriteRenderer(Config(raw_alpha=raw_alpha))
        raster = renderer.render_sprite(reader.decoded[sprite_index])

        if output_path:
            save_raster(raster, output_path)
            return True
        return raster.to_image()


def main(argv: Optional[List[str]] = None) -> int:
    """メイン関数"""
    import argparse

    parser = argparse.ArgumentParser(
        description='TamaSpriteDumper - extract sprites from a Tamagotchi dump')
    parser.add_argument('-i', '--input', required=True, help='path to dump file')
    parser.add_argument('-o', '--output', default='.', help='output path')
    parser.add_argument('-r', '--raw-alpha', action='store_true',
                        help='raw green colour instead of transparency')
    parser.add_argument('-a', '--address', action='store_true',
                        help='output files contain address of image in file')
    parser.add_argument('--keep-truncated', action='store_true',
                        help='decode sprites cut off by the end of the dump')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    parser.add_argument('--log-level', type=str, default='INFO', help='Log level')
    args = parser.parse_args(argv)

    config = TamaDumpConfig(
        input_path=args.input,
        output_dir=args.output,
        raw_alpha=args.raw_alpha,
        filename_address=args.address,
        skip_truncated=not args.keep_truncated,
        log_level='DEBUG' if args.debug else args.log_level,
        debug_mode=args.debug,
    )
    setup_logging(config.log_level)

    try:
        dump_sprites(config)
    except OSError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
