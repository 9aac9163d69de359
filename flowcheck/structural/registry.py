# flowcheck/structural/registry.py

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import yaml
from jsonschema import validate, ValidationError

from flowcheck.errors import MalformedRegistry
from flowcheck.structural.schema import REGISTRY_SCHEMA
from flowcheck.utils.io import PathLike, load_any
from flowcheck.utils.logger import get_logger

logger = get_logger("registry")


@dataclass(frozen=True)
class NodeTypeSpec:
    """What the validator needs to know about a node type. Plain data only."""
    outputs: int = 1
    required: Tuple[str, ...] = ()
    trigger: bool = False
    terminal: bool = False
    code_fields: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outputs": self.outputs,
            "required": list(self.required),
            "trigger": self.trigger,
            "terminal": self.terminal,
            "code_fields": list(self.code_fields),
        }


def _spec(outputs: int = 1, required=(), trigger: bool = False, terminal: bool = False,
          code_fields=()) -> NodeTypeSpec:
    return NodeTypeSpec(outputs=outputs, required=tuple(required), trigger=trigger,
                        terminal=terminal, code_fields=tuple(code_fields))


# Keys are "<type>" or "<type>@<typeVersion>"; the versioned key wins.
DEFAULT_NODE_TYPES: Mapping[str, NodeTypeSpec] = MappingProxyType({
    # entry points
    "n8n-nodes-base.manualTrigger":      _spec(trigger=True),
    "n8n-nodes-base.scheduleTrigger":    _spec(trigger=True),
    "n8n-nodes-base.cron":               _spec(trigger=True),
    "n8n-nodes-base.interval":           _spec(trigger=True),
    "n8n-nodes-base.webhook":            _spec(trigger=True),
    "n8n-nodes-base.formTrigger":        _spec(trigger=True),
    "n8n-nodes-base.errorTrigger":       _spec(trigger=True),
    "n8n-nodes-base.executeWorkflowTrigger": _spec(trigger=True),
    "n8n-nodes-base.emailReadImap":      _spec(trigger=True),
    "n8n-nodes-base.start":              _spec(trigger=True),
    "@n8n/n8n-nodes-langchain.chatTrigger": _spec(trigger=True),

    # branching
    "n8n-nodes-base.if":                 _spec(outputs=2, required=("conditions",)),
    "n8n-nodes-base.switch@1":           _spec(outputs=4),
    "n8n-nodes-base.switch@2":           _spec(outputs=4),
    "n8n-nodes-base.splitInBatches@3":   _spec(outputs=2),
    "n8n-nodes-base.compareDatasets":    _spec(outputs=4),

    # code: the body is JavaScript/Python, "}}" there is plain syntax
    "n8n-nodes-base.code":               _spec(code_fields=("jsCode", "pythonCode")),
    "n8n-nodes-base.function":           _spec(code_fields=("functionCode",)),
    "n8n-nodes-base.functionItem":       _spec(code_fields=("functionCode",)),

    # sinks
    "n8n-nodes-base.httpRequest":        _spec(required=("url",), terminal=True),
    "n8n-nodes-base.emailSend":          _spec(required=("toEmail", "subject"), terminal=True),
    "n8n-nodes-base.gmail":              _spec(terminal=True),
    "n8n-nodes-base.slack":              _spec(terminal=True),
    "n8n-nodes-base.telegram":           _spec(required=("chatId", "text"), terminal=True),
    "n8n-nodes-base.discord":            _spec(terminal=True),
    "n8n-nodes-base.microsoftTeams":     _spec(terminal=True),
    "n8n-nodes-base.googleSheets":       _spec(terminal=True),
    "n8n-nodes-base.airtable":           _spec(terminal=True),
    "n8n-nodes-base.postgres":           _spec(terminal=True),
    "n8n-nodes-base.respondToWebhook":   _spec(terminal=True),
})


def version_key(type_version: Any) -> str:
    """1, 1.0 and "1" all map to "1"; 2.1 maps to "2.1"."""
    try:
        v = float(type_version)
    except (TypeError, ValueError):
        return str(type_version)
    return str(int(v)) if v.is_integer() else str(v)


def looks_like_trigger(node_type: str) -> bool:
    """Keyword fallback for types the table does not know."""
    local = node_type.rsplit(".", 1)[-1].lower()
    return local.endswith("trigger") or local in ("webhook", "cron", "interval", "schedule")


class NodeTypeRegistry:
    """
    Immutable lookup table: node type -> NodeTypeSpec.

    Passed explicitly to every validation call; never stored globally.
    """

    def __init__(self, types: Optional[Mapping[str, NodeTypeSpec]] = None):
        self._types: Mapping[str, NodeTypeSpec] = MappingProxyType(dict(types or {}))

    @classmethod
    def default(cls) -> "NodeTypeRegistry":
        return cls(DEFAULT_NODE_TYPES)

    def lookup(self, node_type: str, type_version: Any = None) -> NodeTypeSpec:
        if type_version is not None:
            spec = self._types.get(f"{node_type}@{version_key(type_version)}")
            if spec is not None:
                return spec
        spec = self._types.get(node_type)
        if spec is not None:
            return spec
        return NodeTypeSpec(trigger=looks_like_trigger(node_type))

    def merged(self, overrides: Mapping[str, NodeTypeSpec]) -> "NodeTypeRegistry":
        types = dict(self._types)
        types.update(overrides)
        return NodeTypeRegistry(types)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {k: self._types[k].to_dict() for k in sorted(self._types)}

    def __contains__(self, key: object) -> bool:
        return key in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)


def registry_from_dict(data: Any, base: Optional[NodeTypeRegistry] = None) -> NodeTypeRegistry:
    """
    Build a registry from a parsed override document:

        {"replace": false, "types": {"acme.approve": {"outputs": 2, "required": ["approver"]}}}

    Overrides extend `base` (default: built-in table) unless `replace` is true.
    """
    try:
        validate(instance=data, schema=REGISTRY_SCHEMA)
    except ValidationError as e:
        raise MalformedRegistry(f"Registry schema validation error: {e.message}") from e

    overrides = {
        name: _spec(
            outputs=entry.get("outputs", 1),
            required=entry.get("required", ()),
            trigger=entry.get("trigger", False),
            terminal=entry.get("terminal", False),
            code_fields=entry.get("code_fields", ()),
        )
        for name, entry in data["types"].items()
    }
    if data.get("replace", False):
        return NodeTypeRegistry(overrides)
    return (base or NodeTypeRegistry.default()).merged(overrides)


def load_registry(path: PathLike, base: Optional[NodeTypeRegistry] = None) -> NodeTypeRegistry:
    """Load a JSON/YAML registry override file."""
    try:
        data = load_any(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise MalformedRegistry(f"Cannot read registry '{path}': {e}") from e
    reg = registry_from_dict(data, base=base)
    logger.debug("loaded registry %s (%d types)", path, len(reg))
    return reg
