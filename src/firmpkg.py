"""firmpkg: install a firmware package and its dependencies into a project.

Exit codes:
    0 - the requested package was installed (skipped dependencies are warnings)
    1 - filesystem or configuration error
    2 - a package source could not be reached
    3 - the requested package was not installed, or --error-on-warnings
        and at least one dependency was skipped
"""

import asyncio
import logging
import sys
from concurrent.futures import ThreadPoolExecutor

from args import parse_args
from cli_config import ConfigError, InstallConfig
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes
from packages.errors import TransportError
from packages.installer import InstallResult, PackageInstaller
from sources import build_resolvers
from versioning.parser import parse_cli_request

logger = logging.getLogger(__name__)

FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _setup_logging(args, level=None):
    """Install console and file sinks according to CLI flags."""
    sinks = []
    if not args.QUIET:
        sinks.append(logging.StreamHandler())
    if args.LOG_FILE:
        file_handler = logging.FileHandler(args.LOG_FILE)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        sinks.append(file_handler)
    if not sinks:
        sinks.append(logging.NullHandler())
    configure_logging(level, sinks=sinks)


async def run_install(installer, identifier, version_range, target, max_workers):
    """Install on the running loop, with blocking work bounded by ``max_workers`` threads."""
    loop = asyncio.get_running_loop()
    loop.set_default_executor(
        ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="firmpkg")
    )
    return await installer.install(identifier, version_range, target)


def log_summary(result: InstallResult) -> None:
    """Log one line per node of the result tree."""
    def _visit(node, depth):
        version = f"@{node.version}" if node.version else ""
        logger.info("%s%s%s (%s): %s", "  " * depth, node.identifier, version,
                    node.requested_range, node.status.value)
        for child in node.children:
            _visit(child, depth + 1)
    _visit(result, 0)


def exit_code_for(result: InstallResult, error_on_warnings: bool) -> ExitCodes:
    """Map an install result tree onto the process exit code."""
    if not result.installed:
        return ExitCodes.EXIT_WARNINGS
    if result.skipped():
        logger.warning("%d dependencies were skipped.", len(result.skipped()))
        if error_on_warnings:
            logger.error("Warnings present, exiting with non-zero status code.")
            return ExitCodes.EXIT_WARNINGS
    return ExitCodes.SUCCESS


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    try:
        _setup_logging(args, args.LOG_LEVEL)
    except OSError as e:
        sys.stderr.write(f"Cannot open log file: {e}\n")
        sys.exit(ExitCodes.FILE_ERROR.value)

    try:
        config = InstallConfig.from_file(args.CONFIG).apply_args(args)
        resolvers = build_resolvers(config.sources)
    except (ConfigError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    if config.log_level and not args.LOG_LEVEL:
        logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))

    identifier, version_range = parse_cli_request(args.PACKAGE, args.RANGE)
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(
                event="function_entry",
                component="cli",
                action="main",
                target=identifier,
                version_range=version_range,
                sources=[s["type"] for s in config.sources],
            ),
        )

    installer = PackageInstaller(
        resolvers,
        layout=config.layout(),
        logger=logging.getLogger("firmpkg.install"),
        dedupe=config.dedupe,
    )
    logger.info("Installing %s (%s) into %s", identifier, version_range, config.target)

    try:
        result = asyncio.run(
            run_install(installer, identifier, version_range, config.target, config.max_workers)
        )
    except TransportError as e:
        logger.error("Package source unavailable: %s, aborting", e)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
    except OSError as e:
        logger.error("IO error: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    log_summary(result)
    if not result.installed:
        logger.error("%s could not be installed.", identifier)
    sys.exit(exit_code_for(result, args.ERROR_ON_WARNINGS).value)


if __name__ == "__main__":
    main()
