# asnmap/fetch/download.py

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

import requests

from asnmap.errors import FetchError
from asnmap.fetch.cache import SnapshotCache
from asnmap.fetch.registries import SourceFile
from asnmap.utils.logging import get_logger

log = get_logger(__name__)

UA = {"User-Agent": "asnmap/0.1 (offline ASN/prefix country tables)"}
CHUNK_SIZE = 1 << 16


def fetch(source: SourceFile, cache: SnapshotCache,
          session: Optional[requests.Session] = None,
          max_retries: int = 2, timeout: int = 120) -> Path:
    """
    Download ``source`` into the cache unless it is already there.

    The body is streamed to a ``.part`` file that is renamed only after a
    complete download. HTTP errors are retried with exponential backoff
    and then raised as FetchError.
    """
    target = cache.path(source.filename)
    if cache.has(source.filename):
        log.info("Found existing file: %s (skipping download)", target)
        return target
    if source.is_archive and cache.has(source.text_name):
        log.info("Found existing uncompressed file: %s (skipping download)", cache.path(source.text_name))
        return cache.path(source.text_name)

    cache.ensure_dir()
    http = session or requests.Session()
    partial = target.with_name(target.name + ".part")

    for attempt in range(max_retries + 1):
        try:
            log.info("Downloading %s from %s...", source.filename, source.url)
            with http.get(source.url, headers=UA, stream=True, timeout=timeout) as r:
                r.raise_for_status()
                with open(partial, "wb") as f:
                    for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
            partial.replace(target)
            return target
        except requests.RequestException as e:
            partial.unlink(missing_ok=True)
            if attempt < max_retries:
                wait_time = 2 ** attempt
                log.warning(
                    "%s: %s - retrying in %ds (attempt %d/%d)",
                    source.filename, type(e).__name__, wait_time, attempt + 1, max_retries,
                )
                time.sleep(wait_time)
                continue
            log.error("Failed to download %s: %s", source.url, e)
            raise FetchError(f"Failed to download {source.url}: {e}") from e

    raise FetchError(f"Failed to download {source.url}")
