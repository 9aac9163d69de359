# flowcheck/structural/metrics.py

from collections import Counter
from typing import Any, Dict, List

import networkx as nx

from flowcheck.structural.model import WorkflowGraph
from flowcheck.utils.graph import Traversal, cyclic_groups


def compute_structural_metrics(
    graph: WorkflowGraph,
    G: nx.MultiDiGraph,
    traversal: Traversal,
    triggers: List[str],
) -> Dict[str, Any]:
    """
    Summary block attached to every report. Plain JSON types only, ordered
    deterministically so reports can be snapshot-tested.
    """
    n_nodes = G.number_of_nodes()
    if n_nodes == 0:
        return {
            "n_nodes": 0, "n_connections": len(graph.connections),
            "triggers": [], "reachable": 0, "unreachable": 0,
            "reachable_ratio": 0.0, "connected_ratio": 0.0,
            "components": 0, "acyclic": True, "cycles": [],
            "node_types": {}, "credentials_required": 0,
        }

    # Connectivity: proportion of nodes in the largest weakly connected component
    comps = list(nx.weakly_connected_components(G))
    connected_ratio = max(len(c) for c in comps) / n_nodes

    cycles = cyclic_groups(G)
    type_counts = Counter(n.type for n in graph.nodes)

    return {
        "n_nodes": n_nodes,
        "n_connections": len(graph.connections),
        "triggers": list(triggers),
        "reachable": len(traversal.reachable),
        "unreachable": n_nodes - len(traversal.reachable),
        "reachable_ratio": round(len(traversal.reachable) / n_nodes, 4),
        "connected_ratio": round(connected_ratio, 4),
        "components": len(comps),
        "acyclic": not cycles,
        "cycles": cycles,
        "node_types": {t: type_counts[t] for t in sorted(type_counts)},
        # nodes that need a credential configured before the workflow can run
        "credentials_required": sum(1 for n in graph.nodes if n.credentials),
    }
