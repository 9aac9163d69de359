# flowcheck/structural/model.py

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, Iterator, Optional, Tuple

from flowcheck.errors import MalformedGraph

MAIN = "main"


@dataclass(frozen=True)
class Node:
    """
    A unit of work in a workflow graph.

    `id` identifies the node in connections; `name` is what expressions such as
    `$node["Name"]` refer to and defaults to the id. `position` is kept raw as
    read from the document (the checker decides whether it is usable).
    """
    id: str
    type: str
    type_version: float = 1
    parameters: Dict[str, Any] = field(default_factory=dict)
    trigger: bool = False
    name: Optional[str] = None
    position: Any = None
    credentials: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise MalformedGraph(f"node id must be a non-empty string, got {self.id!r}")
        if not isinstance(self.type, str):
            raise MalformedGraph(f"node '{self.id}': type must be a string, got {self.type!r}")
        if isinstance(self.type_version, bool) or not isinstance(self.type_version, Real):
            raise MalformedGraph(f"node '{self.id}': typeVersion must be a number, got {self.type_version!r}")
        if not isinstance(self.parameters, dict):
            raise MalformedGraph(f"node '{self.id}': parameters must be a mapping")
        if not isinstance(self.trigger, bool):
            raise MalformedGraph(f"node '{self.id}': trigger flag must be a bool")
        if self.name is None:
            object.__setattr__(self, "name", self.id)
        elif not isinstance(self.name, str) or not self.name:
            raise MalformedGraph(f"node '{self.id}': name must be a non-empty string")
        if not isinstance(self.credentials, dict):
            raise MalformedGraph(f"node '{self.id}': credentials must be a mapping")


@dataclass(frozen=True)
class Connection:
    """Directed edge from `source`'s output port to `target`'s input port."""
    source: str
    target: str
    source_port: int = 0
    target_port: int = 0
    kind: str = MAIN

    def __post_init__(self):
        for attr in ("source", "target"):
            v = getattr(self, attr)
            if not isinstance(v, str) or not v:
                raise MalformedGraph(f"connection {attr} must be a non-empty string, got {v!r}")
        for attr in ("source_port", "target_port"):
            v = getattr(self, attr)
            if isinstance(v, bool) or not isinstance(v, int) or v < 0:
                raise MalformedGraph(f"connection {attr} must be a non-negative integer, got {v!r}")
        if not isinstance(self.kind, str) or not self.kind:
            raise MalformedGraph(f"connection kind must be a non-empty string, got {self.kind!r}")

    @property
    def is_main(self) -> bool:
        return self.kind == MAIN


@dataclass(frozen=True)
class WorkflowGraph:
    """
    `persisted` is set by the parser: document-level checks (workflow name,
    node positions) only apply to graphs read from a workflow file.
    """
    nodes: Tuple[Node, ...] = ()
    connections: Tuple[Connection, ...] = ()
    name: Optional[str] = None
    persisted: bool = False

    def __post_init__(self):
        # Accept any iterable, store tuples so the graph stays immutable.
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "connections", tuple(self.connections))
        for n in self.nodes:
            if not isinstance(n, Node):
                raise MalformedGraph(f"expected Node, got {type(n).__name__}")
        for c in self.connections:
            if not isinstance(c, Connection):
                raise MalformedGraph(f"expected Connection, got {type(c).__name__}")
        if self.name is not None and not isinstance(self.name, str):
            raise MalformedGraph("workflow name must be a string")

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)
