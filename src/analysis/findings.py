"""Structured results produced by the diagnostic rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from versioning.models import ModuleRef


@dataclass(frozen=True)
class Finding:
    """One diagnostic: which rule, what happened, and which modules."""
    rule_id: str
    message: str
    modules: Tuple[ModuleRef, ...] = ()

    def __str__(self) -> str:
        return f"{self.rule_id}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule_id,
            "message": self.message,
            "modules": [m.to_dict() for m in self.modules],
        }


@dataclass
class RuleResult:
    """Outcome of running one rule."""
    rule_id: str
    name: str
    findings: List[Finding] = field(default_factory=list)

    @property
    def flagged(self) -> bool:
        return bool(self.findings)

    def add(self, message: str, *modules: ModuleRef) -> Finding:
        finding = Finding(self.rule_id, message, tuple(modules))
        self.findings.append(finding)
        return finding

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule_id,
            "name": self.name,
            "flagged": self.flagged,
            "findings": [f.to_dict() for f in self.findings],
        }
