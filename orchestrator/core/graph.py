"""Workflow graph construction and validation."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .exceptions import NoStartNodeError
from .logging import get_logger

logger = get_logger(__name__)

START_NODE_TYPE = "start"
END_NODE_TYPE = "end"


@dataclass(frozen=True)
class Node:
    """A single workflow node.

    ``metadata`` is an opaque JSON blob interpreted only by the handler
    registered for ``type``.
    """
    id: str
    type: str
    metadata: bytes = b""


@dataclass(frozen=True)
class Edge:
    """A directed connection between two nodes.

    ``branch_label`` is empty for unconditional edges and ``"true"`` or
    ``"false"`` for the exits of a condition node.
    """
    source_id: str
    target_id: str
    branch_label: Optional[str] = None


@dataclass
class Graph:
    """Indexed, read-only view of a workflow's nodes and edges."""
    nodes: Dict[str, Node] = field(default_factory=dict)
    adjacency: Dict[str, List[Edge]] = field(default_factory=dict)
    start_node: Optional[str] = None

    def validate(self) -> None:
        """Check that the graph has an entry point.

        Raises:
            NoStartNodeError: If no node of type ``start`` was indexed
        """
        if not self.start_node:
            raise NoStartNodeError()

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def outgoing_edges(self, node_id: str) -> List[Edge]:
        """Outgoing edges of a node in declaration order."""
        return list(self.adjacency.get(node_id, ()))

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes


def build_graph(nodes: Iterable[Node], edges: Iterable[Edge]) -> Graph:
    """
    Index nodes and edges into a Graph and validate it.

    When more than one node has type ``start`` the last one wins. Edges whose
    endpoints are missing are kept; traversal reports them only if it reaches
    them.

    Args:
        nodes: Workflow nodes
        edges: Workflow edges, in the order their source should try them

    Returns:
        Graph: The indexed graph

    Raises:
        NoStartNodeError: If no node of type ``start`` is present
    """
    graph = Graph()

    for node in nodes:
        graph.nodes[node.id] = node
        graph.adjacency.setdefault(node.id, [])
        if node.type == START_NODE_TYPE:
            if graph.start_node and graph.start_node != node.id:
                logger.warning(
                    f"Multiple start nodes found; using {node.id} instead of {graph.start_node}"
                )
            graph.start_node = node.id

    edge_count = 0
    for edge in edges:
        graph.adjacency.setdefault(edge.source_id, []).append(edge)
        edge_count += 1

    graph.validate()

    logger.debug(f"Built graph with {len(graph.nodes)} nodes and {edge_count} edges")
    return graph
