"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    OTHER_ERROR = 1
    ARG_ERROR = 2


class RuleIds(Enum):
    """Stable identifiers for the diagnostic rules.

    Args:
        Enum (string): Rule identifier printed with every finding.
    """

    MANIFEST_STALE = "modvet-001"
    UPGRADES = "modvet-002"
    MULTIPLE_MAJOR = "modvet-003"
    CONFLICTING_REQUIRES = "modvet-004"
    EXCLUDED_VERSION = "modvet-005"
    PRERELEASE = "modvet-006"
    PSEUDO_VERSION = "modvet-007"
    REPLACE = "modvet-008"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PROG = "modvet"
    GO_BINARY = "go"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    ENV_LOG_LEVEL = "MODVET_LOG_LEVEL"
    TOOLCHAIN_TIMEOUT_SEC = 300  # 0 disables the bound
    CONFIG_SECTION = "modvet"
    INCOMPATIBLE_SUFFIX = "+incompatible"

    # Order in which the driver runs the optional checks
    CHECK_NAMES = [
        "upgrades",
        "multiplemajor",
        "conflictingrequires",
        "excludedversion",
        "prerelease",
        "pseudoversion",
        "replace",
    ]
