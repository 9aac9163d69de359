# flowcheck/structural/checker.py

from typing import Any, Dict, List, Optional, Tuple, Union

from jsonschema import Draft7Validator

from flowcheck.structural.expressions import check_expression, has_expression, iter_string_fields
from flowcheck.structural.findings import Finding, FindingKind, Report, order_findings
from flowcheck.structural.metrics import compute_structural_metrics
from flowcheck.structural.model import Node, WorkflowGraph
from flowcheck.structural.parser import parse_workflow
from flowcheck.structural.registry import NodeTypeRegistry, NodeTypeSpec
from flowcheck.structural.schema import POSITION_SCHEMA
from flowcheck.structural.secrets import scan_secrets
from flowcheck.utils.graph import build_digraph, traverse
from flowcheck.utils.logger import get_logger

logger = get_logger("checker")

GRAPH_LEVEL = -1

_POSITION = Draft7Validator(POSITION_SCHEMA)


def validate(
    graph: Union[WorkflowGraph, Dict[str, Any]],
    registry: Optional[NodeTypeRegistry] = None,
) -> Report:
    """
    Validate a workflow graph and return every problem found as a Report.

    `graph` may be a WorkflowGraph or a persisted workflow mapping; the latter
    is parsed first and raises MalformedGraph if it is not a workflow.
    `registry` supplies port counts, required fields, and trigger/terminal
    flags per node type (defaults to the built-in table).

    Structural problems never raise. The input is not modified.
    """
    if not isinstance(graph, WorkflowGraph):
        graph = parse_workflow(graph)
    if registry is None:
        registry = NodeTypeRegistry.default()

    nodes = graph.nodes
    specs = [registry.lookup(n.type, n.type_version) for n in nodes]

    position: Dict[str, int] = {}
    for i, n in enumerate(nodes):
        position.setdefault(n.id, i)
    # Graph-wide checks use the first node carrying each id
    primary = [i for i, n in enumerate(nodes) if position[n.id] == i]

    out: List[Tuple[int, Finding]] = []

    def emit(pos: int, kind: FindingKind, message: str, **kw):
        out.append((pos, Finding(kind=kind, message=message, **kw)))

    # 1) Workflow metadata (documents read from disk only)
    if graph.persisted and nodes and not (graph.name or "").strip():
        emit(GRAPH_LEVEL, FindingKind.MISSING_WORKFLOW_NAME, "Workflow has no name")

    # 2) Identity
    for i, n in enumerate(nodes):
        if position[n.id] != i:
            emit(i, FindingKind.DUPLICATE_NODE_ID,
                 f"Node id '{n.id}' already used by node #{position[n.id]}",
                 node_id=n.id)

    # 3) Connection endpoints
    for c in graph.connections:
        src_pos = position.get(c.source, len(nodes))
        for end in (c.source, c.target):
            if end in position:
                continue
            emit(src_pos, FindingKind.UNKNOWN_CONNECTION_ENDPOINT,
                 f"Connection {c.source}[{c.source_port}] -> {c.target}[{c.target_port}] "
                 f"references unknown node '{end}'",
                 node_id=c.source if c.source in position else None,
                 port=c.source_port, reference=end)

    # 4) Reachability, orphans, branches: one traversal from all triggers
    triggers = [nodes[i].id for i in primary if _is_trigger(nodes[i], specs[i])]
    if not triggers:
        emit(GRAPH_LEVEL, FindingKind.NO_TRIGGER_NODE, "no trigger node found")

    G = build_digraph(graph)
    t = traverse(G, triggers)
    logger.debug("traversal from %d trigger(s) reached %d/%d nodes",
                 len(triggers), len(t.reachable), G.number_of_nodes())

    for i in primary:
        n, spec = nodes[i], specs[i]
        is_trigger = _is_trigger(n, spec)

        # Without a trigger every node would fail these; NoTriggerNode covers it.
        if triggers:
            if is_trigger and t.in_main[n.id]:
                emit(i, FindingKind.TRIGGER_HAS_INCOMING_CONNECTION,
                     f"Trigger '{n.name}' has {t.in_main[n.id]} incoming connection(s)",
                     node_id=n.id)
            if not is_trigger and t.in_main[n.id] == 0 and n.id not in t.attached:
                emit(i, FindingKind.ORPHANED_NODE,
                     f"Node '{n.name}' has no incoming connections",
                     node_id=n.id)
            if n.id not in t.reachable:
                emit(i, FindingKind.UNREACHABLE_FROM_TRIGGER,
                     f"Node '{n.name}' is not reachable from any trigger "
                     "(it will never be executed)",
                     node_id=n.id)
                if spec.terminal:
                    emit(i, FindingKind.DEAD_END_OUTPUT,
                         f"Output node '{n.name}' is never reached, its results are never produced",
                         node_id=n.id)

        if spec.outputs > 1:
            for port in range(spec.outputs):
                if port not in t.out_ports[n.id]:
                    emit(i, FindingKind.INCOMPLETE_BRANCH,
                         f"Output {port} of '{n.name}' is not connected "
                         f"({spec.outputs} outputs declared)",
                         node_id=n.id, port=port)

    # 5) Per-node configuration and layout
    known_names = {n.name for n in nodes}
    for i, n in enumerate(nodes):
        for fld in specs[i].required:
            if not _has_value(n.parameters, fld):
                emit(i, FindingKind.MISSING_REQUIRED_FIELD,
                     f"Node '{n.name}' ({n.type}) is missing required parameter '{fld}'",
                     node_id=n.id, parameter=fld)

        for path, text in iter_string_fields(n.parameters):
            if path in specs[i].code_fields or not has_expression(text):
                continue
            for problem in check_expression(text, known_names):
                emit(i, FindingKind.INVALID_EXPRESSION_SYNTAX,
                     f"Parameter '{path}' of '{n.name}': {problem.message}",
                     node_id=n.id, parameter=path, reference=problem.reference)

        for path, label in scan_secrets(n.parameters):
            emit(i, FindingKind.HARDCODED_SECRET,
                 f"Parameter '{path}' of '{n.name}' looks like a hardcoded {label}; "
                 "use credentials or $env instead",
                 node_id=n.id, parameter=path)

        if graph.persisted:
            if n.position is None:
                emit(i, FindingKind.INVALID_NODE_POSITION,
                     f"Node '{n.name}' has no position", node_id=n.id)
            elif not _POSITION.is_valid(n.position):
                emit(i, FindingKind.INVALID_NODE_POSITION,
                     f"Node '{n.name}' has an invalid position {n.position!r}, expected [x, y]",
                     node_id=n.id)

    findings = order_findings(out)
    summary = compute_structural_metrics(graph, G, t, triggers)
    logger.debug("validation finished: %d finding(s)", len(findings))
    return Report(findings=findings, summary=summary)


def _is_trigger(node: Node, spec: NodeTypeSpec) -> bool:
    return node.trigger or spec.trigger


def _has_value(params: Dict[str, Any], path: str) -> bool:
    """True if the (dotted) parameter exists and is not empty."""
    cur: Any = params
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return False
        cur = cur[part]
    if cur is None:
        return False
    if isinstance(cur, str):
        return cur.strip() != ""
    if isinstance(cur, (dict, list)):
        return len(cur) > 0
    return True
