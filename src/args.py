"""Argument parsing functionality for modvet."""

import argparse

from constants import Constants

CHECK_HELP = {
    "upgrades": "report if the current module has available updates for its dependencies",
    "multiplemajor": "report if a module has multiple major versions in use",
    "conflictingrequires": (
        "report if there are requirements for potentially conflicting v0 versions or "
        "'+incompatible' versions for different major versions"
    ),
    "excludedversion": "report if the current build is using a version excluded by a dependency",
    "prerelease": (
        "report if the current build is using a prerelease version "
        "(exclusive of pseudo-versions, which are reported separately)"
    ),
    "pseudoversion": "report if the current build is using a pseudo-version",
    "replace": "report if the main module is using any 'replace' directives",
}


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog=Constants.PROG,
        description=(
            "modvet - read-only auditor for version-selection hazards in a module build list"
        ),
        add_help=True,
    )

    checks = parser.add_argument_group("checks", "Enable or disable individual checks (default: all enabled)")
    for name in Constants.CHECK_NAMES:
        checks.add_argument(f"--{name}",
                            dest=name.upper(),
                            help=CHECK_HELP[name],
                            action=argparse.BooleanOptionalAction,
                            default=None)

    parser.add_argument("-v", "--verbose",
                        dest="VERBOSE",
                        help="verbose: show additional information",
                        action="store_true")
    parser.add_argument("-C", "--directory",
                        dest="WORKDIR",
                        help="Run as if started in this module directory",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"Seconds allowed per toolchain call, 0 for none (default: {Constants.TOOLCHAIN_TIMEOUT_SEC})",
                        action="store",
                        type=float)
    parser.add_argument("--go",
                        dest="GO_BINARY",
                        help="Toolchain executable to invoke (default: go)",
                        action="store",
                        type=str)
    parser.add_argument("--json",
                        dest="OUTPUT",
                        help="Also write the report as JSON to this file",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
