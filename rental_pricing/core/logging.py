"""Logging setup shared by the API and the batch scripts."""

from __future__ import annotations

import logging
from pathlib import Path

from asgi_correlation_id import CorrelationIdFilter

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(message)s"
REQUEST_LOG_FORMAT = (
    "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s %(message)s"
)


def configure_logging(
    level: str | int = logging.INFO,
    *,
    log_path: Path | None = None,
    with_correlation_id: bool = False,
) -> None:
    """Attach console (and optional file) handlers to the root logger.

    Calling it again replaces the handlers it installed before.
    """
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        if getattr(handler, "_rental_pricing", False):
            root.removeHandler(handler)

    formatter = logging.Formatter(
        REQUEST_LOG_FORMAT if with_correlation_id else LOG_FORMAT
    )
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, mode="a", encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        if with_correlation_id:
            handler.addFilter(CorrelationIdFilter(uuid_length=32, default_value="-"))
        handler._rental_pricing = True  # type: ignore[attr-defined]
        root.addHandler(handler)
