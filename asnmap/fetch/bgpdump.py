# asnmap/fetch/bgpdump.py

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from asnmap.datasources.base import PathLike
from asnmap.errors import DecodeError
from asnmap.utils.logging import get_logger

log = get_logger(__name__)

BGPDUMP = "bgpdump"


def decode_rib(rib_path: PathLike, out_path: PathLike, binary: str = BGPDUMP) -> Path:
    """
    Run ``bgpdump -v -m`` over an MRT snapshot, writing its one-line-per-route
    text form to ``out_path``.

    An existing non-empty output is reused.
    """
    src = Path(rib_path)
    dst = Path(out_path)
    if dst.is_file() and dst.stat().st_size > 0:
        log.info("Detected %s already present, skipping bgpdump.", dst)
        return dst

    exe = shutil.which(binary)
    if exe is None:
        raise DecodeError(f"{binary} not found on PATH; install bgpdump to decode {src}")

    log.info("Running bgpdump -> %s...", dst)
    partial = dst.with_name(dst.name + ".part")
    try:
        with open(partial, "wb") as out:
            subprocess.run([exe, "-v", "-m", str(src)], stdout=out, check=True)
    except subprocess.CalledProcessError as e:
        partial.unlink(missing_ok=True)
        log.error("bgpdump exited with status %d on %s", e.returncode, src)
        raise DecodeError(f"bgpdump failed on {src} (exit {e.returncode})") from e
    partial.replace(dst)
    return dst
