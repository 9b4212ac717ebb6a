# -*- coding: utf-8 -*-
import os
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from .compositor import Raster

logger = logging.getLogger(__name__)


def normalize_output_dir(path) -> Path:
    """出力先を正規化し、ディレクトリとして存在するか確認する"""
    path = os.fspath(path) if path else ""
    if not path:
        path = "."
    elif len(path) > 1 and path[-1] in (os.sep, os.altsep or os.sep):
        path = path[:-1]

    out = Path(path)
    if not out.exists():
        raise FileNotFoundError(f"{path} does not exist")
    if not out.is_dir():
        raise NotADirectoryError(f"{path} is not a directory")
    return out


def sprite_filename(index: int, total: int, offset: Optional[int] = None,
                    length: Optional[int] = None) -> str:
    """連番（総数の桁数でゼロ埋め）+ 任意でアドレス範囲のファイル名"""
    digits = len(str(total))
    name = str(index).zfill(digits)
    if offset is not None and length is not None:
        name += f"_0x{offset:x}-0x{offset + length - 1:x}"
    return name + ".png"


def save_raster(raster: Raster, path) -> None:
    img = raster.to_image()
    img.save(path, format='PNG')


def export_rasters(rasters: Iterable[Raster], output_dir, with_address: bool = False) -> List[Path]:
    out_dir = normalize_output_dir(output_dir)
    rasters = list(rasters)
    total = len(rasters)

    written = []
    for i, raster in enumerate(rasters):
        if with_address:
            filename = sprite_filename(i, total, raster.offset, raster.length)
        else:
            filename = sprite_filename(i, total)
        path = out_dir / filename
        save_raster(raster, path)
        logger.info(str(path))
        written.append(path)

    return written
