from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import LoggingConfig


def configure_logging(cfg: LoggingConfig) -> None:
    """Configure root logging once for the process."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if cfg.file is not None:
        cfg.file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(cfg.file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, cfg.level),
        format=cfg.format,
        handlers=handlers,
        force=True,
    )
    # uvicorn's access log is noisy for a websocket relay
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
