from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

import networkx as nx

from ftree.config import LinkKind, NodeKind


@dataclass(frozen=True)
class Node:
    id: str
    kind: NodeKind
    pod: Optional[int] = None


@dataclass(frozen=True)
class Link:
    link_id: int
    source: str
    target: str
    kind: LinkKind = LinkKind.CABLE

    def endpoints(self) -> Tuple[str, str]:
        return tuple(sorted((self.source, self.target)))


class BaseTopology:
    def __init__(self):
        """
        Initializes the BaseTopology with an empty graph.

        Nodes and links are kept in creation order; ``G`` mirrors them as a
        networkx graph and ``incidence`` maps every node id to the ids of the
        links that touch it.
        """
        self.G = nx.Graph()
        self.nodes: Dict[str, Node] = {}
        self.links: List[Link] = []
        self.incidence: Dict[str, Set[int]] = {}
        self.hosts: List[str] = []
        self.edges: List[str] = []
        self.aggregations: List[str] = []
        self.cores: List[str] = []

    def create_topology(self) -> None:
        """
        Method to create the specific topology.
        Should be overridden by subclasses.
        """
        raise NotImplementedError("This method should be overridden by subclasses.")

    def add_node(self, node_id: str, kind: NodeKind, pod: Optional[int] = None) -> Node:
        """
        Adds a node to the topology and to the view matching its kind.

        Args:
            node_id (str): The unique identifier for the node.
            kind (NodeKind): Tier of the node.
            pod (int): Pod index, None for core switches.
        """
        assert node_id not in self.nodes, f"duplicate node id {node_id}"
        node = Node(node_id, kind, pod)
        self.nodes[node_id] = node
        self.incidence[node_id] = set()
        self._view(kind).append(node_id)
        self.G.add_node(node_id, type=kind.value, pod=pod)
        return node

    def add_link(self, node1: str, node2: str, kind: LinkKind = LinkKind.CABLE) -> Link:
        """
        Adds a link between two existing nodes.

        Args:
            node1 (str): The first node in the link.
            node2 (str): The second node in the link.
            kind (LinkKind): Cable for fixed wiring, optical for shortcuts.
        """
        if node1 not in self.nodes or node2 not in self.nodes:
            raise KeyError(f"cannot link unknown node(s) {node1}, {node2}")
        assert node1 != node2, f"self loop on {node1}"
        assert not self.G.has_edge(node1, node2), f"duplicate link {node1}-{node2}"
        link = Link(len(self.links), node1, node2, kind)
        self.links.append(link)
        self.incidence[node1].add(link.link_id)
        self.incidence[node2].add(link.link_id)
        self.G.add_edge(node1, node2, kind=kind.value, link_id=link.link_id)
        return link

    def _view(self, kind: NodeKind) -> List[str]:
        return {
            NodeKind.HOST: self.hosts,
            NodeKind.EDGE: self.edges,
            NodeKind.AGGREGATION: self.aggregations,
            NodeKind.CORE: self.cores,
        }[kind]

    def get_node(self, node_id: str) -> Node:
        return self.nodes[node_id]

    def nodes_of_kind(self, kind: NodeKind) -> List[Node]:
        return [self.nodes[node_id] for node_id in self._view(kind)]

    def neighbors(self, node_id: str) -> Set[str]:
        return set(self.G.neighbors(node_id))

    def degree(self, node_id: str) -> int:
        return len(self.incidence[node_id])

    def incident_links(self, node_id: str) -> List[Link]:
        return [self.links[link_id] for link_id in sorted(self.incidence[node_id])]

    def has_link(self, node1: str, node2: str) -> bool:
        return self.G.has_edge(node1, node2)

    def links_of_kind(self, kind: LinkKind) -> List[Link]:
        return [link for link in self.links if link.kind == kind]

    def cable_signature(self) -> Tuple[Tuple[str, str], ...]:
        """
        Sorted endpoint pairs of every cable link.

        Two builds with the same k always produce the same signature,
        whatever the optical draw was.
        """
        return tuple(sorted(link.endpoints() for link in self.links_of_kind(LinkKind.CABLE)))

    def cable_graph(self) -> nx.Graph:
        cable_edges = [(u, v) for u, v, data in self.G.edges(data=True)
                       if data['kind'] == LinkKind.CABLE.value]
        return self.G.edge_subgraph(cable_edges)

    def get_graph(self) -> nx.Graph:
        """
        Returns the graph object representing the topology.

        Returns:
            nx.Graph: The NetworkX graph object.
        """
        return self.G

    def to_dict(self) -> dict:
        """Node-link view of the topology for an external renderer."""
        return {
            'nodes': [
                {'id': node.id, 'type': node.kind.value, 'pod': node.pod,
                 'neighbors': sorted(self.neighbors(node.id))}
                for node in self.nodes.values()
            ],
            'links': [
                {'id': link.link_id, 'source': link.source, 'target': link.target,
                 'type': link.kind.value}
                for link in self.links
            ],
        }
