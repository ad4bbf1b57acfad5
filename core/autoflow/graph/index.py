"""Adjacency index over a workflow's nodes and connections."""

from collections.abc import Iterable

from autoflow.graph.edge import WorkflowConnection
from autoflow.graph.node import WorkflowNode


class GraphIndex:
    """
    Node and outgoing-connection lookup for one workflow.

    Built once from the flat node and connection lists and read-only
    afterwards. Outgoing connections keep their insertion order, which is
    the tie-break when a node has several untagged connections.

    No well-formedness checks happen here: cycles, unreachable nodes and
    dangling connections are all accepted and dealt with during the walk.
    """

    def __init__(
        self,
        nodes: Iterable[WorkflowNode],
        connections: Iterable[WorkflowConnection],
    ):
        self._nodes: dict[str, WorkflowNode] = {}
        self._outgoing: dict[str, list[WorkflowConnection]] = {}

        for node in nodes:
            self._nodes[node.id] = node

        for connection in connections:
            self._outgoing.setdefault(connection.source, []).append(connection)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    @property
    def nodes(self) -> list[WorkflowNode]:
        return list(self._nodes.values())

    def get_node(self, node_id: str) -> WorkflowNode | None:
        """Get a node by ID."""
        return self._nodes.get(node_id)

    def get_outgoing(self, node_id: str) -> list[WorkflowConnection]:
        """Connections whose source is ``node_id``, in insertion order."""
        return list(self._outgoing.get(node_id, ()))

    def dangling_connections(self) -> list[WorkflowConnection]:
        """Connections whose source or target is not a known node."""
        return [
            conn
            for conns in self._outgoing.values()
            for conn in conns
            if conn.source not in self._nodes or conn.target not in self._nodes
        ]
