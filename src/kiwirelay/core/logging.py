from __future__ import annotations

import logging


def configure_logging(level: str | int = logging.INFO, *, force: bool = False) -> None:
    """Root logger 초기화. 앱 시작 시 한 번만 호출한다."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
