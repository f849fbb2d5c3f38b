"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    EXIT_WARNINGS = 3


class SourceTypes(Enum):
    """Package sources supported by the program.

    Args:
        Enum (string): Package sources supported by the program.
    """

    GITHUB = "github"
    LOCAL = "local"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    SUPPORTED_SOURCES = [
        SourceTypes.GITHUB.value,
        SourceTypes.LOCAL.value,
    ]
    MANIFEST_FILE = "package.json"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "FIRMPKG_LOG_LEVEL"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    # Install layout defaults (relative to the target directory)
    DEFAULT_INCLUDE_DIR = "include"
    DEFAULT_FIRMWARE_DIR = "firmware"
    DEFAULT_TEMP_DIR = ".firmpkg/tmp"
    DEFAULT_MANIFESTS_DIR = ".firmpkg/packages"
    DEFAULT_MAX_WORKERS = 8

    # Repository API constants
    GITHUB_API_BASE = "https://api.github.com"
    GITHUB_API_VERSION = "2022-11-28"
    REPO_API_PER_PAGE = 100
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    USER_AGENT = "firmpkg/0.1"
