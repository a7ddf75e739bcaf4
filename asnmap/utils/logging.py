# asnmap/utils/logging.py

from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "asnmap"

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the ``asnmap`` namespace.

    Modules call this with ``__name__``; anything outside the package
    (scripts, tests) is re-parented so a single handler covers it.
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(verbose: bool = False) -> None:
    """Install one stderr handler on the package logger (idempotent)."""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in root.handlers:
        if getattr(handler, "_asnmap", False):
            # sys.stderr may have been swapped since the handler was made
            handler.setStream(sys.stderr)
            handler.setLevel(root.level)
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.setLevel(root.level)
    handler._asnmap = True  # type: ignore[attr-defined]
    root.addHandler(handler)
