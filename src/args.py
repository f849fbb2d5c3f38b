"""Argument parsing functionality for firmpkg."""

import argparse
from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="firmpkg",
        description=(
            "firmpkg - Install versioned firmware packages and their dependencies"
        ),
        add_help=True,
    )

    parser.add_argument("PACKAGE",
                        help="Package to install, i.e: @owner/repo or @owner/repo@^1.2.0")
    parser.add_argument("RANGE",
                        help="Version range (npm syntax). Overrides a range embedded in PACKAGE; defaults to latest.",
                        nargs="?",
                        default=None)

    parser.add_argument("-t", "--target",
                        dest="TARGET",
                        help="Project directory to install into (default: current directory)",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)

    layout_group = parser.add_argument_group("layout")
    layout_group.add_argument("--include-dir",
                              dest="INCLUDE_DIR",
                              help=f"Directory for header files (default: {Constants.DEFAULT_INCLUDE_DIR})",
                              action="store",
                              type=str)
    layout_group.add_argument("--firmware-dir",
                              dest="FIRMWARE_DIR",
                              help=f"Directory for firmware binaries (default: {Constants.DEFAULT_FIRMWARE_DIR})",
                              action="store",
                              type=str)
    layout_group.add_argument("--temp-dir",
                              dest="TEMP_DIR",
                              help=f"Staging directory for extracted archives (default: {Constants.DEFAULT_TEMP_DIR})",
                              action="store",
                              type=str)
    layout_group.add_argument("--manifests-dir",
                              dest="MANIFESTS_DIR",
                              help=("Directory for installed package.json files, stored as "
                                    f"<dir>/<owner>/<repo>/package.json (default: {Constants.DEFAULT_MANIFESTS_DIR})"),
                              action="store",
                              type=str)

    source_group = parser.add_argument_group("sources")
    source_group.add_argument("--source",
                              dest="SOURCES",
                              help="Package source to query, in order (repeatable)",
                              action="append",
                              type=str.lower,
                              choices=Constants.SUPPORTED_SOURCES)
    source_group.add_argument("--local-root",
                              dest="LOCAL_ROOT",
                              help="Root directory of the local source (<root>/<owner>/<repo>/<tag>.zip)",
                              action="store",
                              type=str)

    parser.add_argument("--max-workers",
                        dest="MAX_WORKERS",
                        help=f"Worker threads for downloads and file copies (default: {Constants.DEFAULT_MAX_WORKERS})",
                        action="store",
                        type=int)
    parser.add_argument("--dedupe",
                        dest="DEDUPE",
                        help="Install each exact package version at most once per run.",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--error-on-warnings",
                        dest="ERROR_ON_WARNINGS",
                        help="Exit with a non-zero status code if any package was skipped.",
                        action="store_true")
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")

    return parser.parse_args(argv)
