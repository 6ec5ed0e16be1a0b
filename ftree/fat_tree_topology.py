import logging
import random

from ftree.base_topology import BaseTopology
from ftree.config import InvalidParameterError, LinkKind, NodeKind

logger = logging.getLogger(__name__)

MAX_OPTICAL_RETRIES = 10


def validate_k(k) -> None:
    if isinstance(k, bool) or not isinstance(k, int):
        raise InvalidParameterError(f"k must be an integer, got {type(k).__name__}")
    if k < 2:
        raise InvalidParameterError(f"k must be at least 2, got {k}")
    if k % 2 != 0:
        raise InvalidParameterError(f"k must be even for a valid fat-tree, got {k}")


def validate_optical_link_count(count) -> None:
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidParameterError(f"optical link count must be an integer, got {type(count).__name__}")
    if count < 0:
        raise InvalidParameterError(f"optical link count must be non-negative, got {count}")


class FatTreeTopology(BaseTopology):
    def __init__(self, k, optical_links=0, rng=None, seed=None):
        """
        Initialize a Fat-Tree topology with optical shortcuts.

        Args:
            k (int): Number of ports per switch, also the number of pods. Must be even.
            optical_links (int): Number of optical shortcut placement attempts.
            rng: Source of randomness exposing ``choice``. Defaults to a
                ``random.Random`` seeded with ``seed``.
            seed (int): Seed used when no ``rng`` is given.
        """
        validate_k(k)
        validate_optical_link_count(optical_links)
        super().__init__()
        self.k = k
        self.requested_optical_links = optical_links
        self.rng = rng if rng is not None else random.Random(seed)
        self.abandoned_optical_links = 0
        self.create_topology()
        self.add_optical_links(optical_links)
        logger.info(f"Built fat-tree k={k}: {len(self.hosts)} hosts, "
                    f"{len(self.edges) + len(self.aggregations) + len(self.cores)} switches, "
                    f"{len(self.links)} links "
                    f"({len(self.links_of_kind(LinkKind.OPTICAL))}/{optical_links} optical)")

    def create_topology(self):
        k = self.k
        half_k = k // 2
        num_pods = k
        num_core_switches = half_k ** 2

        # Create core switches
        for i in range(num_core_switches):
            self.add_node(f"core_{i}", NodeKind.CORE)

        # Create pods
        for pod in range(num_pods):
            agg_switches = []
            edge_switches = []
            # Create aggregation switches
            for a in range(half_k):
                node_id = f"agg_{pod}_{a}"
                self.add_node(node_id, NodeKind.AGGREGATION, pod)
                agg_switches.append(node_id)
            # Create edge switches and their hosts
            for e in range(half_k):
                edge = f"edge_{pod}_{e}"
                self.add_node(edge, NodeKind.EDGE, pod)
                edge_switches.append(edge)
                for h in range(half_k):
                    host = f"host_{pod}_{e}_{h}"
                    self.add_node(host, NodeKind.HOST, pod)
                    self.add_link(host, edge)
            # Connect edge switches to aggregation switches (full mesh within pod)
            for edge in edge_switches:
                for agg in agg_switches:
                    self.add_link(edge, agg)
            # Aggregation switch a uplinks to the core block [a*k/2, (a+1)*k/2)
            for a, agg in enumerate(agg_switches):
                for offset in range(half_k):
                    self.add_link(agg, self.cores[a * half_k + offset])

    def _valid_optical_pair(self, agg1, agg2):
        if agg1 == agg2:
            return False
        if self.nodes[agg1].pod == self.nodes[agg2].pod:
            return False
        return not self.has_link(agg1, agg2)

    def add_optical_links(self, count):
        """
        Make ``count`` attempts to add an optical link between aggregation
        switches in different pods.

        The second endpoint is redrawn at most MAX_OPTICAL_RETRIES times; an
        attempt that never finds a valid partner adds nothing.
        """
        if count <= 0 or len(self.aggregations) < 2:
            return
        for attempt in range(count):
            agg1 = self.rng.choice(self.aggregations)
            agg2 = self.rng.choice(self.aggregations)
            retries = 0
            while not self._valid_optical_pair(agg1, agg2) and retries < MAX_OPTICAL_RETRIES:
                agg2 = self.rng.choice(self.aggregations)
                retries += 1
            if self._valid_optical_pair(agg1, agg2):
                self.add_link(agg1, agg2, LinkKind.OPTICAL)
            else:
                self.abandoned_optical_links += 1
                logger.debug(f"Optical attempt {attempt} abandoned after {retries} retries ({agg1}, {agg2})")

    def pod_of(self, node_id):
        return self.nodes[node_id].pod

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['k'] = self.k
        return data


def build_topology(k, optical_link_count=0, rng=None):
    """
    Build a fresh fat-tree of radix ``k`` with up to ``optical_link_count``
    optical shortcuts.

    Raises:
        InvalidParameterError: If ``k`` is odd or below 2, or the optical
            link count is negative.
    """
    return FatTreeTopology(k, optical_links=optical_link_count, rng=rng)
