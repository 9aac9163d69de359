# utils/graph.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

import networkx as nx

from flowcheck.structural.model import MAIN, WorkflowGraph


def build_digraph(graph: WorkflowGraph) -> nx.MultiDiGraph:
    """
    Build a multigraph keyed by node id. Parallel edges are kept because two
    output ports of one node may feed the same target.

    Nodes are inserted in input order (first occurrence for duplicate ids).
    Connections whose endpoints are unknown are skipped; the validator reports
    them separately.
    """
    G = nx.MultiDiGraph()
    for n in graph.nodes:
        if n.id not in G:
            G.add_node(n.id, type=n.type)
    for c in graph.connections:
        if c.source in G and c.target in G:
            G.add_edge(c.source, c.target, port=c.source_port, index=c.target_port, kind=c.kind)
    return G


def main_view(G: nx.MultiDiGraph) -> nx.DiGraph:
    """Collapse to a simple DiGraph over data-flow ("main") edges only."""
    D = nx.DiGraph()
    D.add_nodes_from(G.nodes)
    D.add_edges_from((u, v) for u, v, kind in G.edges(data="kind") if kind == MAIN)
    return D


@dataclass
class Traversal:
    """Everything the structural checks need, gathered in one forward pass."""
    reachable: Set[str] = field(default_factory=set)
    order: List[str] = field(default_factory=list)
    in_main: Dict[str, int] = field(default_factory=dict)
    out_ports: Dict[str, Set[int]] = field(default_factory=dict)
    attached: Set[str] = field(default_factory=set)


def traverse(G: nx.MultiDiGraph, triggers: Iterable[str]) -> Traversal:
    """
    Multi-source BFS from all triggers.

    Data flows along "main" edges. Sub-nodes (language models, tools, memory)
    point *into* the node that uses them through non-main edges, so they are
    reached by walking those edges backwards from a reached node.
    """
    t = Traversal()
    for n in G.nodes:
        t.in_main[n] = 0
        t.out_ports[n] = set()
    for u, v, d in G.edges(data=True):
        if d["kind"] == MAIN:
            t.in_main[v] += 1
            t.out_ports[u].add(d["port"])
        else:
            t.attached.add(u)

    q = deque()
    for s in triggers:
        if s in G and s not in t.reachable:
            t.reachable.add(s)
            q.append(s)

    while q:
        cur = q.popleft()
        t.order.append(cur)
        nxt = [v for _, v, kind in G.out_edges(cur, data="kind") if kind == MAIN]
        nxt += [u for u, _, kind in G.in_edges(cur, data="kind") if kind != MAIN]
        for n in nxt:
            if n not in t.reachable:
                t.reachable.add(n)
                q.append(n)
    return t


def cyclic_groups(G: nx.MultiDiGraph) -> List[List[str]]:
    """Node groups that form directed cycles over main edges, in input order."""
    D = main_view(G)
    position = {n: i for i, n in enumerate(G.nodes)}
    groups = []
    for comp in nx.strongly_connected_components(D):
        if len(comp) > 1 or any(D.has_edge(n, n) for n in comp):
            groups.append(sorted(comp, key=position.__getitem__))
    return sorted(groups, key=lambda g: position[g[0]])
