"""
Main module for the Kalcium test client.

Provides the KalciumTestClient class and the command-line interface.
"""

import asyncio
import sys
from typing import List, Optional

from .client import KalcClient
from .config import Config, ScenarioSettings, parse_args
from .scenario import (
    ScenarioContext,
    ScenarioReport,
    ScenarioRunner,
    Step,
    StepStatus,
    default_steps,
)
from .utils import logger


class KalciumTestClient:
    """
    Runs the end-to-end scenario against one Kalcium server.

    The scenario covers:
    1. Login and termbase discovery
    2. Search
    3. Entry create, read back, media download and delete
    4. Term request create and delete
    5. Segment analysis, when the CheckTerm module is enabled
    6. Logout
    """

    def __init__(self, config: Config, steps: Optional[List[Step]] = None,
                 client: Optional[KalcClient] = None):
        """
        Initialize the test client.

        Args:
            config: Connection and scenario configuration
            steps: Scenario steps, defaults to the full scenario
            client: Pre-built API client, mainly for tests
        """
        self.config = config
        self.settings: ScenarioSettings = config.scenario_settings()
        self.client = client or KalcClient(
            config.server_url,
            timeout=config.timeout,
            ssl_verify=config.ssl_verify,
            ignore_kalc_version=config.ignore_kalc_version,
        )
        self.runner = ScenarioRunner(steps or default_steps()).select(self.settings.steps)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Log out if a session is still open, then release the connection pool."""
        try:
            if self.client.session.is_authenticated:
                await self.client.logout()
        finally:
            await self.client.close()

    async def run(self) -> ScenarioReport:
        """Run the scenario and log a summary."""
        logger.info("=" * 60)
        logger.info(f"Kalcium test scenario on {self.client.backend_url}")
        logger.info(f"Termbase: {self.settings.termbase_name}")
        logger.info("=" * 60)

        context = ScenarioContext(
            client=self.client,
            settings=self.settings,
            username=self.config.username,
            password=self.config.password,
        )
        report = await self.runner.run(context)
        log_summary(report)
        return report


def log_summary(report: ScenarioReport) -> None:
    logger.info("=" * 60)
    for outcome in report.outcomes:
        if outcome.status == StepStatus.PASSED:
            logger.info(f"[OK]   {outcome.name}")
        elif outcome.status == StepStatus.SKIPPED:
            logger.info(f"[SKIP] {outcome.name}: {outcome.message}")
        else:
            logger.error(f"[FAIL] {outcome.name}: {outcome.message}")

    passed = len(report.by_status(StepStatus.PASSED))
    failed = len(report.by_status(StepStatus.FAILED))
    skipped = len(report.by_status(StepStatus.SKIPPED))
    logger.info(f"Passed: {passed}, failed: {failed}, skipped: {skipped}")
    logger.info("=" * 60)


def list_steps() -> None:
    for step in default_steps():
        requires = f" (requires {', '.join(step.requires)})" if step.requires else ""
        print(f"{step.name:<22}{step.description}{requires}")


async def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    Run the command-line interface.

    Returns:
        Process exit code: 0 when no step failed, 1 otherwise
    """
    config = None
    try:
        args = parse_args(argv)
        if args.list_steps:
            list_steps()
            return 0

        config = Config.from_args(args)
        if config.verbose:
            logger.debug("Verbose logging enabled")

        async with KalciumTestClient(config) as test_client:
            report = await test_client.run()
        return 0 if report.succeeded else 1

    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 1
    except (ValueError, FileNotFoundError) as e:
        logger.error(f"[ERROR] {e}")
        return 2
    except Exception as e:
        logger.error(f"Fatal error: {str(e)}")
        if config is not None and config.verbose:
            import traceback
            logger.error("Full traceback:")
            logger.error(traceback.format_exc())
        return 1


def main():
    """
    Main entry point for the package.

    Can be called as:
    - python -m kalcium_client
    - kalcium-test-client (if installed)
    """
    sys.exit(asyncio.run(run_cli()))


if __name__ == "__main__":
    main()
