"""Exception hierarchy for modvet.

Findings are not errors. Everything here aborts the analysis pass.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ModvetError(Exception):
    """Base exception for all modvet errors."""

    def __init__(
        self,
        message: str,
        *,
        rule: Optional[str] = None,
        path: Optional[str] = None,
        version: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.rule = rule
        self.path = path
        self.version = version
        self.details = dict(details or {})

    def context(self) -> Dict[str, Any]:
        """Return the reproduction context (rule, path, version, details)."""
        ctx: Dict[str, Any] = {}
        if self.rule:
            ctx["rule"] = self.rule
        if self.path:
            ctx["path"] = self.path
        if self.version:
            ctx["version"] = self.version
        ctx.update(self.details)
        return ctx

    def with_rule(self, rule: str) -> "ModvetError":
        """Attach the rule name if the raiser did not know it."""
        if not self.rule:
            self.rule = rule
        return self

    def __str__(self) -> str:
        ctx = self.context()
        if ctx:
            detail_str = ", ".join(f"{k}={v}" for k, v in ctx.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(ModvetError):
    """Raised when the configuration file or overrides are invalid."""


class ProjectEnvironmentError(ModvetError):
    """Raised when not inside a module or the toolchain is unavailable."""


class StaleManifestError(ModvetError):
    """Raised when the manifest would be rewritten by a build."""


class ResolutionError(ModvetError):
    """Raised when a resolver or manifest call fails for other reasons."""


class MalformedDataError(ModvetError):
    """Raised for invalid version strings or malformed requirement edges."""
