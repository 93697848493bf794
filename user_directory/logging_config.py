from __future__ import annotations

import logging


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup for the directory API.

    ``level`` comes from LOG_LEVEL; unknown names fall back to INFO. Only the
    first call takes effect, so building several apps in one process (tests)
    keeps a single handler.
    """
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
