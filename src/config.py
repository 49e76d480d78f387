"""Analysis configuration: which checks run, verbosity and toolchain tunables.

Precedence (lowest to highest): defaults, config file, CLI flags.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from errors import ConfigurationError

logger = logging.getLogger(__name__)

# check name -> AnalysisConfig attribute
CHECK_FIELDS = {
    "upgrades": "check_upgrades",
    "multiplemajor": "check_multiple_major",
    "conflictingrequires": "check_conflicting_requires",
    "excludedversion": "check_excluded_version",
    "prerelease": "check_prerelease",
    "pseudoversion": "check_pseudo_version",
    "replace": "check_replace",
}


@dataclass
class AnalysisConfig:
    """Options for one analysis pass."""
    check_upgrades: bool = True
    check_multiple_major: bool = True
    check_conflicting_requires: bool = True
    check_excluded_version: bool = True
    check_prerelease: bool = True
    check_pseudo_version: bool = True
    check_replace: bool = True
    verbose: bool = False
    timeout: float = Constants.TOOLCHAIN_TIMEOUT_SEC
    go_binary: str = Constants.GO_BINARY
    workdir: Optional[str] = None

    def is_enabled(self, check: str) -> bool:
        return bool(getattr(self, CHECK_FIELDS[check]))

    def enabled_checks(self):
        """Return the enabled check names in driver order."""
        return [name for name in Constants.CHECK_NAMES if self.is_enabled(name)]

    def apply(self, data: Dict[str, Any], source: str) -> None:
        """Merge a config mapping ({checks: {...}, verbose, timeout, go_binary})."""
        for key, value in data.items():
            if key == "checks":
                if not isinstance(value, dict):
                    raise ConfigurationError(f"'checks' must be a mapping in {source}")
                for check, enabled in value.items():
                    if check not in CHECK_FIELDS:
                        raise ConfigurationError(f"unknown check {check!r} in {source}")
                    if not isinstance(enabled, bool):
                        raise ConfigurationError(
                            f"check {check!r} must be true or false in {source}"
                        )
                    setattr(self, CHECK_FIELDS[check], enabled)
            elif key in ("verbose", "timeout", "go_binary"):
                setattr(self, key, _coerce(key, value, source))
            else:
                raise ConfigurationError(f"unknown configuration key {key!r} in {source}")


def _coerce(key: str, value: Any, source: str) -> Any:
    if key == "verbose":
        if not isinstance(value, bool):
            raise ConfigurationError(f"'verbose' must be true or false in {source}")
        return value
    if key == "timeout":
        try:
            timeout = float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"'timeout' must be a number in {source}") from exc
        if timeout < 0:
            raise ConfigurationError(f"'timeout' must not be negative in {source}")
        return timeout
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"'{key}' must be a non-empty string in {source}")
    return value.strip()


def load_config_file(path: str) -> Dict[str, Any]:
    """Load a YAML or JSON config file, returning its modvet section.

    Raises:
        ConfigurationError: If the file is missing or cannot be parsed.
    """
    if not os.path.isfile(path):
        raise ConfigurationError(f"config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"failed to load config {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config {path} must contain a mapping")
    section = data.get(Constants.CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{Constants.CONFIG_SECTION}' section of {path} must be a mapping")
    return section


def build_config(args) -> AnalysisConfig:
    """Build the AnalysisConfig from parsed CLI args (and --config, if given)."""
    config = AnalysisConfig()

    config_path = getattr(args, "CONFIG", None)
    if config_path:
        config.apply(load_config_file(config_path), config_path)
        logger.debug("Loaded configuration from: %s", config_path)

    for check, attr in CHECK_FIELDS.items():
        value = getattr(args, check.upper(), None)
        if value is not None:
            setattr(config, attr, bool(value))
    if getattr(args, "VERBOSE", False):
        config.verbose = True
    if getattr(args, "TIMEOUT", None) is not None:
        config.timeout = _coerce("timeout", args.TIMEOUT, "--timeout")
    if getattr(args, "GO_BINARY", None):
        config.go_binary = args.GO_BINARY
    if getattr(args, "WORKDIR", None):
        config.workdir = args.WORKDIR
    return config
