from __future__ import annotations
import logging
import os
import sys

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once for the CLI/API entry points."""
    name = (level or os.getenv("TAGBOOK_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format=FORMAT,
        stream=sys.stdout,
    )


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
