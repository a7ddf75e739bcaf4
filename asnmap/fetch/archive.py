# asnmap/fetch/archive.py

from __future__ import annotations

import bz2
import gzip
import shutil
from pathlib import Path

from asnmap.datasources.base import PathLike
from asnmap.errors import DecodeError
from asnmap.utils.logging import get_logger

log = get_logger(__name__)

_OPENERS = {
    ".bz2": bz2.open,
    ".gz": gzip.open,
}


def decompress(path: PathLike) -> Path:
    """
    Decompress a ``.bz2``/``.gz`` file next to itself, keeping the archive.

    Plain files are returned unchanged, as is an archive whose
    decompressed copy already exists.
    """
    src = Path(path)
    opener = _OPENERS.get(src.suffix)
    if opener is None:
        return src

    dst = src.with_suffix("")
    if dst.is_file() and dst.stat().st_size > 0:
        log.info("Detected %s already present, skipping decompression.", dst)
        return dst

    log.info("Decompressing %s -> %s...", src, dst)
    partial = dst.with_name(dst.name + ".part")
    try:
        with opener(src, "rb") as fin, open(partial, "wb") as fout:
            shutil.copyfileobj(fin, fout)
    except (OSError, EOFError) as e:
        partial.unlink(missing_ok=True)
        raise DecodeError(f"Decompression of {src} failed: {e}") from e
    partial.replace(dst)
    return dst


def compress_bz2(path: PathLike, remove_original: bool = True) -> Path:
    """bzip2 a file to ``<path>.bz2``."""
    src = Path(path)
    dst = src.with_name(src.name + ".bz2")
    original_size = src.stat().st_size
    with open(src, "rb") as fin, bz2.open(dst, "wb", compresslevel=9) as fout:
        shutil.copyfileobj(fin, fout)
    if remove_original:
        src.unlink()

    log.info(
        "Compressed %s (%.1f MB -> %.1f MB)",
        dst.name,
        original_size / 1024 / 1024,
        dst.stat().st_size / 1024 / 1024,
    )
    return dst
