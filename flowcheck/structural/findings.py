# flowcheck/structural/findings.py

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"

    @property
    def rank(self) -> int:
        return 0 if self is Severity.ERROR else 1


class FindingKind(str, Enum):
    NO_TRIGGER_NODE = "NoTriggerNode"
    DUPLICATE_NODE_ID = "DuplicateNodeId"
    UNKNOWN_CONNECTION_ENDPOINT = "UnknownConnectionEndpoint"
    ORPHANED_NODE = "OrphanedNode"
    UNREACHABLE_FROM_TRIGGER = "UnreachableFromTrigger"
    INCOMPLETE_BRANCH = "IncompleteBranch"
    DEAD_END_OUTPUT = "DeadEndOutput"
    INVALID_EXPRESSION_SYNTAX = "InvalidExpressionSyntax"
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    TRIGGER_HAS_INCOMING_CONNECTION = "TriggerHasIncomingConnection"
    HARDCODED_SECRET = "HardcodedSecret"
    MISSING_WORKFLOW_NAME = "MissingWorkflowName"
    INVALID_NODE_POSITION = "InvalidNodePosition"

    @property
    def severity(self) -> Severity:
        return _DEFAULT_SEVERITY[self]


_DEFAULT_SEVERITY = {
    FindingKind.NO_TRIGGER_NODE: Severity.ERROR,
    FindingKind.DUPLICATE_NODE_ID: Severity.ERROR,
    FindingKind.UNKNOWN_CONNECTION_ENDPOINT: Severity.ERROR,
    FindingKind.ORPHANED_NODE: Severity.ERROR,
    FindingKind.UNREACHABLE_FROM_TRIGGER: Severity.ERROR,
    FindingKind.INCOMPLETE_BRANCH: Severity.ERROR,
    FindingKind.INVALID_EXPRESSION_SYNTAX: Severity.ERROR,
    FindingKind.MISSING_REQUIRED_FIELD: Severity.ERROR,
    FindingKind.DEAD_END_OUTPUT: Severity.WARNING,
    FindingKind.TRIGGER_HAS_INCOMING_CONNECTION: Severity.WARNING,
    FindingKind.HARDCODED_SECRET: Severity.WARNING,
    FindingKind.MISSING_WORKFLOW_NAME: Severity.WARNING,
    FindingKind.INVALID_NODE_POSITION: Severity.WARNING,
}


@dataclass(frozen=True)
class Finding:
    """A single structural or syntactic problem."""
    kind: FindingKind
    message: str
    node_id: Optional[str] = None
    port: Optional[int] = None
    parameter: Optional[str] = None
    reference: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return self.kind.severity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "kind": self.kind.value,
            "message": self.message,
            "node": self.node_id,
            "port": self.port,
            "parameter": self.parameter,
            "reference": self.reference,
        }

    def __str__(self) -> str:
        return f"{self.severity.value.upper():7} {self.kind.value}: {self.message}"


def order_findings(entries: List[Tuple[int, Finding]]) -> Tuple[Finding, ...]:
    """
    Deterministic report order: severity, then the attributed node's position
    in the input node list, then kind name. `sorted` is stable, so equal keys
    keep emission order.
    """
    ranked = sorted(entries, key=lambda e: (e[1].severity.rank, e[0], e[1].kind.value))
    return tuple(f for _, f in ranked)


@dataclass(frozen=True)
class Report:
    findings: Tuple[Finding, ...] = ()
    summary: Dict[str, Any] = field(default_factory=dict)

    @property
    def errors(self) -> List[Finding]:
        return [f for f in self.findings if f.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Finding]:
        return [f for f in self.findings if f.severity is Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def exit_code(self, strict: bool = False) -> int:
        """0 when deployable; with strict=True warnings also fail."""
        if self.errors:
            return 1
        if strict and self.warnings:
            return 1
        return 0

    def of_kind(self, kind: FindingKind) -> List[Finding]:
        return [f for f in self.findings if f.kind is kind]

    def for_node(self, node_id: str) -> List[Finding]:
        return [f for f in self.findings if f.node_id == node_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.ok,
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "findings": [f.to_dict() for f in self.findings],
            "summary": self.summary,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent, sort_keys=True)
