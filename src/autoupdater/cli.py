"""Command-line entry point for the autoupdater."""

import logging
import sys

import click

from autoupdater.config import DEFAULT_CONFIG_PATH, load_context
from autoupdater.errors import AutoupdaterError
from autoupdater.services.hooks import ProcessHookRunner
from autoupdater.services.orchestrator import Orchestrator
from autoupdater.utils.logging import setup_logger


def _route_warnings(logger: logging.Logger) -> None:
    logging.captureWarnings(True)
    warnings_logger = logging.getLogger("py.warnings")
    for handler in logger.handlers:
        if handler not in warnings_logger.handlers:
            warnings_logger.addHandler(handler)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-b", "--branch", default=None, help="Branch to update from (overrides settings)")
@click.option("-f", "--force", is_flag=True, help="Update regardless of enabled flag and rollout probability")
@click.option("--fallback", is_flag=True, help="Only update a full day after the rollout window closes")
@click.option(
    "-c",
    "--config",
    "config_path",
    envvar="AUTOUPDATER_CONFIG",
    default=str(DEFAULT_CONFIG_PATH),
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Configuration file",
)
@click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Also log to this file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(branch, force, fallback, config_path, log_file, verbose):
    """Check for and apply a firmware update from a random mirror."""
    logger = setup_logger(
        "autoupdater",
        log_file=log_file,
        level=logging.DEBUG if verbose else logging.INFO,
    )
    _route_warnings(logger)

    try:
        context = load_context(config_path, branch=branch, force=force, fallback=fallback)
        result = Orchestrator(context, ProcessHookRunner()).run()
    except AutoupdaterError as e:
        logger.error(f"autoupdater: error: {e}")
        sys.exit(1)

    logger.debug(f"Run finished: {result.value}")
    sys.exit(0)


if __name__ == "__main__":
    main()
