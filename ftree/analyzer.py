"""
This module computes structural statistics of a built fat-tree
"""
from dataclasses import dataclass, asdict
import logging
from typing import List

import networkx as nx
import pandas as pd

from ftree.config import LinkKind, NodeKind
from ftree.fat_tree_topology import build_topology

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopologyStats:
    """
    Snapshot of the derived statistics of one topology instance.

    Recomputed from scratch on every rebuild and never updated in place.
    """
    k: int
    total_hosts: int
    total_switches: int
    core_switches: int
    aggregation_switches: int
    edge_switches: int
    total_links: int
    cable_links: int
    optical_links: int
    total_transceivers: int
    switch_transceivers: int
    reachable_cores: int
    paths_to_core: int
    intra_pod_paths: int
    inter_pod_paths: int
    bisection_bw: float
    degenerate: bool = False

    @property
    def paths_to_core_description(self) -> str:
        if self.degenerate:
            return str(self.paths_to_core)
        return f"{self.paths_to_core} (via Aggs)"

    @property
    def bisection_bw_display(self) -> str:
        return f"{self.bisection_bw:.2f}"

    def __str__(self) -> str:
        return (
            f"Fat-Tree (k={self.k})\n"
            f"  Hosts: {self.total_hosts}\n"
            f"  Switches: {self.total_switches} "
            f"(Core: {self.core_switches}, Agg: {self.aggregation_switches}, Edge: {self.edge_switches})\n"
            f"  Cables: {self.total_links}\n"
            f"  Tx's: {self.total_transceivers}\n"
            f"  Switch Tx's: {self.switch_transceivers}\n"
            f"  Core paths: {self.reachable_cores} Cores Reachable via {self.paths_to_core_description}\n"
            f"  Intra-pod: {self.intra_pod_paths} Paths (via Aggs)\n"
            f"  Inter-pod: {self.inter_pod_paths} Paths (via Cores)\n"
            f"  Bisection BW: {self.bisection_bw_display} (Normalized)\n"
            f"  OCS: {self.optical_links} Direct Inter-Pod Links"
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data['paths_to_core_description'] = self.paths_to_core_description
        data['bisection_bw_display'] = self.bisection_bw_display
        return data


def _core_uplinks(topology, agg_id):
    return {n for n in topology.neighbors(agg_id)
            if topology.get_node(n).kind == NodeKind.CORE}


def upstream_paths(topology, edge_id):
    """
    Disjoint upstream paths and reachable cores from one edge switch.

    Returns:
        tuple: (number of aggregation neighbours with at least one core
        uplink, set of core ids reachable through them).
    """
    paths = 0
    reachable = set()
    for neighbor in topology.neighbors(edge_id):
        if topology.get_node(neighbor).kind != NodeKind.AGGREGATION:
            continue
        cores = _core_uplinks(topology, neighbor)
        if cores:
            paths += 1
        reachable |= cores
    return paths, reachable


def reachable_cores_from(topology, edge_id) -> int:
    return len(upstream_paths(topology, edge_id)[1])


def analyze_topology(topology, k) -> TopologyStats:
    """
    Compute the statistics snapshot for ``topology`` built with radix ``k``.

    A topology without edge switches yields zero path statistics and is
    flagged as degenerate instead of raising.
    """
    half_k = k // 2
    degenerate = False

    if topology.edges:
        # first-created edge switch, for determinism
        paths_to_core, reachable = upstream_paths(topology, topology.edges[0])
        reachable_cores = len(reachable)
    else:
        paths_to_core = reachable_cores = 0
        degenerate = True
    if not topology.cores:
        degenerate = True

    host_bw = k ** 3 / 4
    core_bw = half_k ** 2 * k
    bisection_bw = round(core_bw / host_bw, 2) if host_bw > 0 else 0.0

    total_hosts = len(topology.hosts)
    total_links = len(topology.links)
    optical_links = len(topology.links_of_kind(LinkKind.OPTICAL))

    stats = TopologyStats(
        k=k,
        total_hosts=total_hosts,
        total_switches=len(topology.edges) + len(topology.aggregations) + len(topology.cores),
        core_switches=len(topology.cores),
        aggregation_switches=len(topology.aggregations),
        edge_switches=len(topology.edges),
        total_links=total_links,
        cable_links=total_links - optical_links,
        optical_links=optical_links,
        total_transceivers=total_links * 2,
        switch_transceivers=total_links * 2 - total_hosts,
        reachable_cores=reachable_cores,
        paths_to_core=paths_to_core,
        intra_pod_paths=half_k,
        inter_pod_paths=half_k * half_k,
        bisection_bw=bisection_bw,
        degenerate=degenerate,
    )
    if degenerate:
        logger.warning(f"Degenerate topology for k={k}: path statistics reported as zero")
    return stats


def count_shortest_paths(topology, src, dst, cable_only=True) -> int:
    """
    Count the shortest paths between two nodes.

    By default optical shortcuts are ignored so the result can be checked
    against the fat-tree path multiplicities.
    """
    graph = topology.cable_graph() if cable_only else topology.get_graph()
    try:
        return sum(1 for _ in nx.all_shortest_paths(graph, source=src, target=dst))
    except nx.NetworkXNoPath:
        return 0


def find_wiring_defects(topology, k) -> List[str]:
    """
    Check a topology against the fat-tree structural invariants.

    Returns:
        list: One message per defect, empty for a correctly wired tree.
    """
    half_k = k // 2
    defects = []

    expected = {
        NodeKind.CORE: half_k ** 2,
        NodeKind.AGGREGATION: k * half_k,
        NodeKind.EDGE: k * half_k,
        NodeKind.HOST: k ** 3 // 4,
    }
    for kind, count in expected.items():
        actual = len(topology.nodes_of_kind(kind))
        if actual != count:
            defects.append(f"expected {count} {kind.value} nodes, found {actual}")

    expected_degree = {
        NodeKind.HOST: 1,
        NodeKind.EDGE: k,
        NodeKind.AGGREGATION: k,
        NodeKind.CORE: k,
    }
    for node in topology.nodes.values():
        cable_degree = sum(1 for link in topology.incident_links(node.id)
                           if link.kind == LinkKind.CABLE)
        if cable_degree != expected_degree[node.kind]:
            defects.append(f"{node.id} has {cable_degree} cable links, expected {expected_degree[node.kind]}")

    for link in topology.links_of_kind(LinkKind.OPTICAL):
        source = topology.get_node(link.source)
        target = topology.get_node(link.target)
        if source.kind != NodeKind.AGGREGATION or target.kind != NodeKind.AGGREGATION:
            defects.append(f"optical link {link.source}-{link.target} is not between aggregation switches")
        elif source.pod == target.pod:
            defects.append(f"optical link {link.source}-{link.target} stays inside pod {source.pod}")

    for edge_id in topology.edges:
        reachable = reachable_cores_from(topology, edge_id)
        if reachable != len(topology.cores):
            defects.append(f"{edge_id} reaches {reachable} of {len(topology.cores)} cores")

    return defects


def sweep(k_values, optical_link_count=0, rng=None) -> List[TopologyStats]:
    results = []
    for k in k_values:
        topology = build_topology(k, optical_link_count, rng=rng)
        results.append(analyze_topology(topology, k))
    return results


def stats_frame(stats_list) -> pd.DataFrame:
    return pd.DataFrame([stats.to_dict() for stats in stats_list])


def save_stats_to_csv(stats_list, filename):
    if not filename.endswith('.csv'):
        filename += '.csv'
    df = stats_frame(stats_list)
    df.to_csv(filename, index=False)
    logger.info(f"Saved {len(df)} stats rows to {filename}")
    return filename
