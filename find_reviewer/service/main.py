"""
find-reviewer - Main Entry Point

Serves the matching engine over HTTP and sweeps timed-out reviews.
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
from uuid import uuid4

import uvicorn

from find_reviewer import __version__
from find_reviewer.api.app import create_app
from find_reviewer.api.dispatcher import Dispatcher
from find_reviewer.domain.engines.authentication import Authentication
from find_reviewer.domain.engines.matching_engine import (
    MatchingEngine,
    MatchingEngineConfig,
    RandomIdGenerator,
    selection_policy_for,
)
from find_reviewer.service.clock import Clock
from find_reviewer.service.errors import FindReviewerError
from find_reviewer.service.logging import Loggers, set_run_id, setup_logging
from find_reviewer.service.settings import Settings, load_settings, validate_settings
from find_reviewer.service.sweeper import TimeoutSweeper

logger = Loggers.main()


class Application:
    """Main application orchestrator."""

    def __init__(self, settings: Settings, clock: Clock | None = None):
        self.settings = settings
        self.run_id = str(uuid4())[:8]
        self.clock = clock or Clock()

        rng = random.Random()
        self.engine = MatchingEngine(
            MatchingEngineConfig(
                timeout_in_s=settings.timeout_in_s,
                wip_limit=settings.wip_limit,
            ),
            id_generator=RandomIdGenerator(rng),
            selection=selection_policy_for(settings.selection_policy, rng),
            clock=self.clock,
        )
        self.authentication = Authentication.from_file(settings.users_file)
        self.dispatcher = Dispatcher(self.engine, self.authentication)
        self.app = create_app(self.dispatcher, static_dir=settings.static_dir)
        self.sweeper = TimeoutSweeper(self.dispatcher, settings.sweep_interval_s)
        self._server: uvicorn.Server | None = None

    async def start(self) -> None:
        """Start the sweeper and serve HTTP until shutdown."""
        logger.info(
            "Starting find-reviewer",
            event_type="startup",
            version=__version__,
            run_id=self.run_id,
            address=self.settings.address,
            wip_limit=self.settings.wip_limit,
            timeout_in_s=self.settings.timeout_in_s,
            selection_policy=self.settings.selection_policy,
        )

        self.sweeper.start()

        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_config=None,
        )
        self._server = uvicorn.Server(config)
        await self._server.serve()

    async def stop(self) -> None:
        """Stop the application gracefully."""
        logger.info("Shutdown initiated", event_type="shutdown_start")
        await self.sweeper.stop()
        logger.info(
            "Shutdown complete",
            event_type="shutdown_complete",
            run_id=self.run_id,
        )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="find-reviewer",
        description="Match coders who need a code review with reviewers who have time.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the JSON config file (default: find-reviewer.json)",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file with overrides (default: .env)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


async def async_main(settings: Settings) -> int:
    """Async main entry point."""
    app = Application(settings)
    set_run_id(app.run_id)

    try:
        await app.start()
    except Exception as e:
        logger.error(
            "Fatal error",
            event_type="fatal_error",
            error=str(e),
            exc_info=True,
        )
        return 1
    finally:
        await app.stop()

    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    try:
        settings = load_settings(config_path=args.config, dotenv_path=args.env_file)
    except FindReviewerError as e:
        setup_logging()
        logger.error(str(e), event_type="config_error")
        sys.exit(1)

    setup_logging(
        level=settings.log_level,
        json_output=settings.json_logs,
        log_file=settings.log_file or None,
    )

    issues = validate_settings(settings)
    for issue in issues:
        if issue.startswith("ERROR"):
            logger.error(issue, event_type="config_error")
        else:
            logger.warning(issue, event_type="config_warning")
    if any(issue.startswith("ERROR") for issue in issues):
        sys.exit(1)

    try:
        exit_code = asyncio.run(async_main(settings))
    except FindReviewerError as e:
        logger.error(str(e), event_type="startup_error")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
