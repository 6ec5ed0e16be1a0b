import random

import pandas as pd
import pytest

from ftree.analyzer import (analyze_topology, count_shortest_paths, find_wiring_defects,
                            reachable_cores_from, save_stats_to_csv, stats_frame, sweep)
from ftree.base_topology import BaseTopology
from ftree.config import LinkKind, NodeKind
from ftree.fat_tree_topology import build_topology


def test_k4_scenario():
    """
    k=4 without optical links matches the hand-counted fat-tree.
    """
    stats = analyze_topology(build_topology(4, 0), 4)

    assert stats.core_switches == 4
    assert stats.aggregation_switches == 8
    assert stats.edge_switches == 8
    assert stats.total_hosts == 16
    assert stats.total_switches == 20
    assert stats.intra_pod_paths == 2
    assert stats.inter_pod_paths == 4
    assert stats.bisection_bw == 1.0
    assert stats.bisection_bw_display == "1.00"
    assert stats.total_links == 48
    assert stats.cable_links == 48
    assert stats.optical_links == 0
    assert stats.total_transceivers == 96
    assert stats.switch_transceivers == 80
    assert stats.reachable_cores == 4
    assert stats.paths_to_core == 2
    assert stats.paths_to_core_description == "2 (via Aggs)"
    assert not stats.degenerate


@pytest.mark.parametrize("k", range(2, 21, 2))
def test_full_bisection_for_every_k(k):
    """
    Core-facing and host-facing capacity always match.
    """
    stats = analyze_topology(build_topology(k, 0), k)
    assert stats.bisection_bw == 1.0
    assert stats.bisection_bw_display == "1.00"
    assert stats.total_hosts == k ** 3 // 4
    assert stats.core_switches == (k // 2) ** 2


@pytest.mark.parametrize("k", [2, 4, 6, 8])
def test_reachable_cores_from_every_edge(k):
    """
    Every edge switch reaches every core switch through the striped wiring.
    """
    topology = build_topology(k, 0)
    for edge in topology.edges:
        assert reachable_cores_from(topology, edge) == len(topology.cores)


def test_optical_links_are_tallied():
    """
    Optical links count towards links and transceivers.
    """
    topology = build_topology(6, 6, rng=random.Random(4))
    stats = analyze_topology(topology, 6)
    optical = len(topology.links_of_kind(LinkKind.OPTICAL))

    assert stats.optical_links == optical
    assert stats.total_links == 162 + optical
    assert stats.cable_links == 162
    assert stats.total_transceivers == 2 * stats.total_links
    assert stats.switch_transceivers == 2 * stats.total_links - 54
    assert stats.bisection_bw == 1.0


def test_degenerate_topology_reports_zeros():
    """
    A topology without switches is reported, not rejected.
    """
    stats = analyze_topology(BaseTopology(), 4)

    assert stats.degenerate
    assert stats.reachable_cores == 0
    assert stats.paths_to_core == 0
    assert stats.total_hosts == 0
    assert stats.total_links == 0
    assert stats.switch_transceivers == 0
    assert stats.paths_to_core_description == "0"
    assert "0 Cores Reachable via 0\n" in str(stats)


def test_topology_without_cores_is_degenerate():
    """
    Edge and aggregation switches with no core tier above them.
    """
    topology = BaseTopology()
    topology.add_node("agg_0_0", NodeKind.AGGREGATION, 0)
    topology.add_node("edge_0_0", NodeKind.EDGE, 0)
    topology.add_node("host_0_0_0", NodeKind.HOST, 0)
    topology.add_link("host_0_0_0", "edge_0_0")
    topology.add_link("edge_0_0", "agg_0_0")

    stats = analyze_topology(topology, 2)

    assert stats.degenerate
    assert stats.reachable_cores == 0
    assert stats.paths_to_core == 0
    assert stats.core_switches == 0
    assert stats.paths_to_core_description == "0"


def test_zero_radix_bisection_defaults_to_zero():
    stats = analyze_topology(BaseTopology(), 0)
    assert stats.bisection_bw == 0.0


def test_shortest_path_counts_match_formulas():
    """
    Path multiplicities measured on the graph agree with k/2 and (k/2)^2.
    """
    for k in (4, 6):
        topology = build_topology(k, 4, rng=random.Random(k))
        stats = analyze_topology(topology, k)
        assert count_shortest_paths(topology, "host_0_0_0", "host_0_1_0") == stats.intra_pod_paths
        assert count_shortest_paths(topology, "host_0_0_0", "host_1_0_0") == stats.inter_pod_paths
        assert count_shortest_paths(topology, "host_0_0_0", "host_0_0_1") == 1


def test_optical_shortcut_shortens_inter_pod_path():
    topology = build_topology(4, 1, rng=_Picks(["agg_0_0", "agg_1_0"]))
    assert count_shortest_paths(topology, "agg_0_0", "agg_1_0", cable_only=False) == 1
    assert count_shortest_paths(topology, "agg_0_0", "agg_1_0") == 2


def test_no_path_returns_zero():
    topology = BaseTopology()
    topology.add_node("a", kind=NodeKind.HOST)
    topology.add_node("b", kind=NodeKind.HOST)
    topology.add_node("c", kind=NodeKind.HOST)
    topology.add_link("a", "b")
    assert count_shortest_paths(topology, "a", "c", cable_only=False) == 0


@pytest.mark.parametrize("k", [2, 4, 6])
def test_built_topologies_have_no_wiring_defects(k):
    topology = build_topology(k, 2 * k, rng=random.Random(k))
    assert find_wiring_defects(topology, k) == []


def test_wiring_defects_are_reported():
    """
    A topology built for k=4 checked against k=6 fails every count.
    """
    topology = build_topology(4, 0)
    defects = find_wiring_defects(topology, 6)
    assert any("core nodes" in d for d in defects)
    assert "edge_0_0 has 4 cable links, expected 6" in defects


def test_sweep_and_csv_export(tmp_path):
    results = sweep([2, 4, 6], optical_link_count=0)
    assert [stats.k for stats in results] == [2, 4, 6]

    df = stats_frame(results)
    assert list(df['total_hosts']) == [2, 16, 54]
    assert list(df['bisection_bw_display']) == ["1.00", "1.00", "1.00"]

    filename = save_stats_to_csv(results, str(tmp_path / "stats"))
    assert filename.endswith(".csv")
    loaded = pd.read_csv(filename)
    assert len(loaded) == 3
    assert list(loaded['total_links']) == [6, 48, 162]


def test_stats_panel_text():
    stats = analyze_topology(build_topology(4, 0), 4)
    text = str(stats)
    assert "4 Cores Reachable via 2 (via Aggs)" in text
    assert "1.00 (Normalized)" in text
    assert "0 Direct Inter-Pod Links" in text


class _Picks:
    def __init__(self, picks):
        self.picks = iter(picks)

    def choice(self, seq):
        return next(self.picks)