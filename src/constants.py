"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    REMEDIATION_FAILED = 2


class OutcomeStatus(Enum):
    """Per-consumer remediation outcomes."""

    PULL = "pull"
    COMPARE = "compare"
    NO_CHANGES = "no_changes"
    SKIPPED = "skipped"
    FAILED = "failed"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "REHAB_LOG_LEVEL"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    # Build tool
    GO_BINARY = "go"
    MANIFEST_NAME = "go.mod"
    EXCLUDED_PREFIXES = ["golang.org/"]

    # Repository API constants
    GITHUB_API_BASE = "https://api.github.com"
    GITHUB_WEB_BASE = "https://github.com"
    ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
    GITHUB_ACCEPT = "application/vnd.github+json"
    GITHUB_API_VERSION = "2022-11-28"

    # Remediation
    BRANCH_PREFIX = "rehab/"
    BRANCH_SUFFIX_ATTEMPTS = 5
    COMMIT_MESSAGE = "Upgrade module requirements"
    PULL_TITLE = "Upgrade module requirements"
    REMEDIATION_WORKERS = 4


def _load_yaml_config(path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML configuration file into a dict.

    Missing files and non-mapping documents yield an empty dict. The
    ``rehab`` section is used when present, otherwise the whole document.
    """
    if not path:
        return {}
    if not os.path.isfile(path):
        logger.warning("Config file not found: %s", path)
        return {}

    import yaml  # pylint: disable=import-outside-toplevel

    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level is not a mapping", path)
        return {}
    section = data.get("rehab", data)
    return section if isinstance(section, dict) else {}
