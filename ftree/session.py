from dataclasses import dataclass
import logging
import random
from typing import Callable, List, Optional

from ftree.analyzer import TopologyStats, analyze_topology
from ftree.config import TopologyConfig
from ftree.fat_tree_topology import FatTreeTopology, build_topology

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    config: TopologyConfig
    topology: FatTreeTopology
    stats: TopologyStats

    def to_dict(self) -> dict:
        return {
            'config': self.config.to_dict(),
            'topology': self.topology.to_dict(),
            'stats': self.stats.to_dict(),
        }


class TopologySession:
    """
    Holds the current topology and its statistics for an interactive host.

    Every reconfiguration builds a new topology and analyzes it before the
    snapshot is replaced, so readers only ever see a matching pair. Sessions
    share no state with each other.
    """

    def __init__(self, config: Optional[TopologyConfig] = None, rng=None):
        self.rng = rng
        self._listeners: List[Callable[[Snapshot], None]] = []
        self._snapshot = self._build((config or TopologyConfig()).replace())

    def _build(self, config: TopologyConfig) -> Snapshot:
        rng = self.rng if self.rng is not None else random.Random(config.seed)
        topology = build_topology(config.width, config.optical_links, rng=rng)
        stats = analyze_topology(topology, config.width)
        return Snapshot(config, topology, stats)

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def config(self) -> TopologyConfig:
        return self._snapshot.config

    @property
    def topology(self) -> FatTreeTopology:
        return self._snapshot.topology

    @property
    def stats(self) -> TopologyStats:
        return self._snapshot.stats

    def subscribe(self, callback: Callable[[Snapshot], None]) -> None:
        self._listeners.append(callback)

    def reconfigure(self, **changes) -> Snapshot:
        """
        Apply raw configuration changes (width, depth, optical_links, seed)
        and rebuild from scratch.
        """
        config = self.config.replace(**changes)
        snapshot = self._build(config)
        self._snapshot = snapshot
        logger.info(f"Reconfigured: width={config.width} depth={config.depth} "
                    f"optical_links={config.optical_links} -> {snapshot.stats.optical_links} realized")
        for callback in self._listeners:
            callback(snapshot)
        return snapshot

    def rebuild(self) -> Snapshot:
        return self.reconfigure()

    def to_dict(self) -> dict:
        return self._snapshot.to_dict()
