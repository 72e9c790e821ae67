"""Graph and vertex types used by the graph colouring solvers."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable


class Vertex:
    """A graph vertex with a colour and its direct and indirect neighbours.

    Direct neighbours are the targets of edges leaving this vertex; indirect
    neighbours are the sources of edges arriving at it. Colour 0 means
    "uncoloured".
    """

    __slots__ = ("id", "colour", "_neighbours", "_indirect_neighbours")

    def __init__(self, vertex_id: int, colour: int = 0) -> None:
        self.id = vertex_id
        self.colour = colour
        self._neighbours: dict[int, Vertex] = {}
        self._indirect_neighbours: dict[int, Vertex] = {}

    @property
    def neighbours(self) -> list[Vertex]:
        """Direct neighbours ordered by id."""
        return [self._neighbours[key] for key in sorted(self._neighbours)]

    @property
    def indirect_neighbours(self) -> list[Vertex]:
        """Indirect neighbours ordered by id."""
        return [
            self._indirect_neighbours[key]
            for key in sorted(self._indirect_neighbours)
        ]

    def add_neighbour(self, other: Vertex) -> None:
        self._neighbours[other.id] = other

    def add_indirect_neighbour(self, other: Vertex) -> None:
        self._indirect_neighbours[other.id] = other

    def describe_neighbours(self) -> str:
        return f"\nNeighbourhood({self}): [{_join(self.neighbours)}]"

    def describe_indirect_neighbours(self) -> str:
        return f"\nNeighbourhood({self}): [{_join(self.indirect_neighbours)}]"

    def __lt__(self, other: Vertex) -> bool:
        return self.id < other.id

    def __str__(self) -> str:
        return f"(i:{self.id + 1}, c:{self.colour})"

    def __repr__(self) -> str:
        return f"Vertex(id={self.id}, colour={self.colour})"


def _join(items: Iterable[object]) -> str:
    return ", ".join(str(item) for item in items)


def format_colours(colours: Iterable[int]) -> str:
    """Render colours as a comma separated list."""
    return _join(colours)


class Graph:
    """A directed graph whose vertices carry colours."""

    def __init__(self, size: int = 0) -> None:
        self.vertices: list[Vertex] = [Vertex(i) for i in range(size)]

    def __len__(self) -> int:
        return len(self.vertices)

    def __str__(self) -> str:
        return _join(self.vertices)

    def _vertex(self, vertex_id: int) -> Vertex:
        if not 0 <= vertex_id < len(self.vertices):
            raise IndexError(f"vertex id {vertex_id} out of range")
        return self.vertices[vertex_id]

    def add_edge(self, source_id: int, destination_id: int) -> None:
        source = self._vertex(source_id)
        destination = self._vertex(destination_id)
        source.add_neighbour(destination)
        destination.add_indirect_neighbour(source)

    def copy(self) -> Graph:
        """Return an independent copy with the same colours and edges."""
        clone = Graph()
        clone.vertices = [Vertex(v.id, v.colour) for v in self.vertices]
        for vertex in self.vertices:
            for neighbour in vertex.neighbours:
                clone.add_edge(vertex.id, neighbour.id)
        return clone

    def __copy__(self) -> Graph:
        return self.copy()

    def colours(self) -> list[int]:
        """Colours of the vertices in vertex order."""
        return [vertex.colour for vertex in self.vertices]

    def reset_colouring(self) -> None:
        for vertex in self.vertices:
            vertex.colour = 0

    def bfs(self, start_id: int) -> list[Vertex]:
        """Vertices reachable from ``start_id`` in breadth-first order."""
        start = self._vertex(start_id)
        visited = {start.id}
        queue = deque([start])
        order: list[Vertex] = []
        while queue:
            current = queue.popleft()
            order.append(current)
            for neighbour in current.neighbours:
                if neighbour.id not in visited:
                    visited.add(neighbour.id)
                    queue.append(neighbour)
        return order

    def dfs(self, start_id: int) -> list[Vertex]:
        """Vertices reachable from ``start_id`` in depth-first (stack) order."""
        start = self._vertex(start_id)
        visited = {start.id}
        stack = [start]
        order: list[Vertex] = []
        while stack:
            current = stack.pop()
            order.append(current)
            for neighbour in current.neighbours:
                if neighbour.id not in visited:
                    visited.add(neighbour.id)
                    stack.append(neighbour)
        return order

    def is_bipartite(self) -> bool:
        """Two-colour the uncoloured vertices with 1 and 2; report success."""
        for vertex in self.vertices:
            if vertex.colour == 0 and not self._bipartite_visit(vertex):
                return False
        return True

    def bipartition(self) -> tuple[list[Vertex], list[Vertex]]:
        """Return the vertices of each side; raise ValueError if impossible."""
        if not self.is_bipartite():
            raise ValueError("graph is not bipartite")
        first = [v for v in self.vertices if v.colour == 1]
        second = [v for v in self.vertices if v.colour == 2]
        return first, second

    @staticmethod
    def _bipartite_visit(vertex: Vertex) -> bool:
        vertex.colour = 1
        queue = deque([vertex])
        while queue:
            current = queue.popleft()
            for neighbour in current.neighbours:
                if neighbour.colour == 0:
                    neighbour.colour = 3 - current.colour
                    queue.append(neighbour)
                elif neighbour.colour == current.colour:
                    return False
        return True