# flowcheck/structural/parser.py

from __future__ import annotations

from typing import Any, Dict, List

import yaml
from jsonschema import validate, ValidationError

from flowcheck.errors import MalformedGraph
from flowcheck.structural.model import MAIN, Connection, Node, WorkflowGraph
from flowcheck.structural.schema import WORKFLOW_SCHEMA
from flowcheck.utils.io import PathLike, load_any
from flowcheck.utils.logger import get_logger

logger = get_logger("parser")


def parse_workflow(workflow: Any) -> WorkflowGraph:
    """
    Build a WorkflowGraph from either:
      1) n8n native json (nodes + connections keyed by node name)
      2) simplified bench format (nodes + edges keyed by node id)

    Raises MalformedGraph when the document does not match WORKFLOW_SCHEMA.
    Connections to names that match no node are kept as-is so the validator
    can report them.
    """
    if not isinstance(workflow, dict):
        raise MalformedGraph(f"workflow must be a JSON object, got {type(workflow).__name__}")
    try:
        validate(instance=workflow, schema=WORKFLOW_SCHEMA)
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise MalformedGraph(f"Schema validation error at {where}: {e.message}") from e

    nodes: List[Node] = []
    id_by_name: Dict[str, str] = {}
    for n in workflow.get("nodes") or []:
        raw_id = n.get("id")
        name = n.get("name")
        nid = str(raw_id) if raw_id is not None else name
        nodes.append(Node(
            id=nid,
            name=name or nid,
            type=n["type"],
            type_version=n.get("typeVersion", 1),
            parameters=n.get("parameters") or {},
            trigger=n.get("trigger", False),
            position=n.get("position"),
            credentials=n.get("credentials") or {},
        ))
        # first node wins when names collide
        id_by_name.setdefault(name or nid, nid)

    def resolve(ref: Any) -> str:
        ref = str(ref)
        if ref in id_by_name:
            return id_by_name[ref]
        return ref

    connections: List[Connection] = []

    # n8n connections: connections[<nodeName>][<stream>][<outputIndex>] -> list of {node, type, index}
    for src_name, streams in (workflow.get("connections") or {}).items():
        src = resolve(src_name)
        for stream, ports in streams.items():
            for port, entry in enumerate(ports):
                if entry is None:
                    continue
                hops = [entry] if isinstance(entry, dict) else entry
                for hop in hops:
                    connections.append(Connection(
                        source=src,
                        target=resolve(hop["node"]),
                        source_port=port,
                        target_port=hop.get("index", 0),
                        kind=stream,
                    ))

    for e in workflow.get("edges") or []:
        connections.append(Connection(
            source=resolve(e["source"]),
            target=resolve(e["target"]),
            source_port=e.get("sourcePort", 0),
            target_port=e.get("targetPort", 0),
            kind=e.get("type", MAIN),
        ))

    logger.debug("parsed workflow: %d nodes, %d connections", len(nodes), len(connections))
    return WorkflowGraph(nodes=nodes, connections=connections, name=workflow.get("name"), persisted=True)


def load_workflow(path: PathLike) -> WorkflowGraph:
    """Read a .json/.yaml workflow file and parse it."""
    try:
        data = load_any(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise MalformedGraph(f"Cannot read workflow '{path}': {e}") from e
    return parse_workflow(data)
