"""CLI wrapper running one EIC -> Ghostfolio sync pass."""

from __future__ import annotations

import argparse
import asyncio
import logging

from .core.config import get_settings
from .core.errors import SyncError
from .core.logging import setup_logging
from .sync.pipeline import run_eic_sync

logger = logging.getLogger("services.ghostfolio_sync.cli")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Synchronise EIC broker activity into Ghostfolio")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(args.log_level or settings.log_level)
    logger.debug("Running with settings %s", settings.dict_for_logging())

    try:
        summary = asyncio.run(run_eic_sync(settings))
    except SyncError:
        logger.exception("EIC sync failed")
        return 1
    print(summary.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
