"""Graph colouring model: instance loading, fitness evaluation and solvers."""

from __future__ import annotations

import logging
import math
import random
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from itertools import pairwise
from os import PathLike
from pathlib import Path

from metaopt.gcp.graph import Graph, Vertex

logger = logging.getLogger(__name__)

MAXIMUM_SA_ITERATIONS = 150_000


@dataclass
class ModelParams:
    """Parameters of a loaded colouring instance."""

    instance_name: str = ""
    vertices: int = 0
    edges: int = 0
    max_degree: int = 0
    optimum: int = 0


@dataclass(order=True)
class Solution:
    """A coloured graph together with its fitness (number of colours used)."""

    graph: Graph = field(default_factory=Graph, compare=False)
    fitness: int = 0

    def __str__(self) -> str:
        return f"Graph: [{self.graph}], fitness: {self.fitness}"


def has_no_collision(forbidden_colours: Iterable[int], colour: int) -> bool:
    """True when ``colour`` is not among the forbidden colours."""
    return colour not in forbidden_colours


def find_available_colour(forbidden_colours: Sequence[int]) -> int:
    """Smallest positive colour missing from a sorted list of forbidden colours."""
    if not forbidden_colours or forbidden_colours[0] > 1:
        return 1
    if len(forbidden_colours) == 1:
        return 2 if forbidden_colours[0] == 1 else 1
    for current, following in pairwise(forbidden_colours):
        if following - current > 1:
            return current + 1
    return forbidden_colours[-1] + 1


def _tokenize(line: str, delimiter: str = " ") -> list[str]:
    tokens = line.split(delimiter)
    if tokens and tokens[-1] == "":
        tokens.pop()
    return tokens


def _int_token(tokens: list[str], position: int, line: str) -> int:
    try:
        return int(tokens[position])
    except (IndexError, ValueError) as error:
        raise ValueError(f"malformed line: {line!r}") from error


class Model:
    """A graph colouring problem instance and the operations on its colourings."""

    def __init__(self, seed: int | None = None) -> None:
        self.params = ModelParams()
        self.base_graph: Graph | None = None
        self.rng = random.Random(seed)
        self.solver = Solver(self)

    def load_file(self, path: str | PathLike[str]) -> None:
        """Load an instance in DIMACS colouring format from a file."""
        with open(path, encoding="utf-8") as stream:
            self.load_lines(stream)

    def load_lines(self, lines: Iterable[str]) -> None:
        """Load an instance from DIMACS colouring lines."""
        reading_first_line = True
        for raw_line in lines:
            line = raw_line.rstrip("\r\n")
            if not line:
                raise ValueError("empty line in instance")
            tokens = _tokenize(line)
            kind = line[0]
            if kind == "c":
                if reading_first_line:
                    self.params.instance_name = tokens[-1] if tokens else ""
                    reading_first_line = False
            elif kind == "p":
                self.params.vertices = _int_token(tokens, 2, line)
                self.params.edges = _int_token(tokens, 3, line)
                self.create_base_graph()
            elif kind == "o":
                self.params.optimum = _int_token(tokens, 1, line)
            elif kind == "e":
                source = _int_token(tokens, 1, line) - 1
                destination = _int_token(tokens, 2, line) - 1
                self.add_edge_to_base_graph(source, destination)
        self.params.max_degree = self.calculate_max_degree()

    def _require_base_graph(self) -> Graph:
        if self.base_graph is None:
            raise ValueError("no problem line has been read yet")
        return self.base_graph

    def create_base_graph(self) -> None:
        self.base_graph = Graph(self.params.vertices)

    def add_edge_to_base_graph(self, source_id: int, destination_id: int) -> None:
        self._require_base_graph().add_edge(source_id, destination_id)

    def calculate_max_degree(self) -> int:
        """Largest number of direct neighbours of any vertex."""
        graph = self._require_base_graph()
        return max((len(v.neighbours) for v in graph.vertices), default=0)

    def describe(self) -> str:
        params = self.params
        return (
            "-> Model parameters:"
            f"\n|-> Name: {params.instance_name}"
            f"\n|-> Vertices: {params.vertices}"
            f"\n|-> Edges: {params.edges}"
            f"\n|-> Maximum degree: {params.max_degree}"
            f"\n\\-> Optimum colouring: {params.optimum}"
        )

    @staticmethod
    def check_colouring_correctness(graph: Graph) -> bool:
        """True when no vertex shares its colour with a direct neighbour."""
        return all(
            neighbour.colour != vertex.colour
            for vertex in graph.vertices
            for neighbour in vertex.neighbours
        )

    @staticmethod
    def get_used_colours(graph: Graph) -> set[int]:
        return set(graph.colours())

    @staticmethod
    def get_forbidden_colours(vertex: Vertex) -> list[int]:
        """Sorted distinct colours of direct and indirect neighbours."""
        colours = {n.colour for n in vertex.neighbours}
        colours.update(n.colour for n in vertex.indirect_neighbours)
        return sorted(colours)

    def fix_colouring(self, graph: Graph) -> Graph:
        """Recolour conflicting vertices in place with the first free colour."""
        for vertex in graph.vertices:
            forbidden = self.get_forbidden_colours(vertex)
            if has_no_collision(forbidden, vertex.colour):
                continue
            vertex.colour = find_available_colour(forbidden)
        return graph

    def evaluate_fitness(self, graph: Graph) -> int:
        """Number of colours used, repairing the colouring first if needed."""
        if not self.check_colouring_correctness(graph):
            self.fix_colouring(graph)
        return len(self.get_used_colours(graph))

    def mutate_random_vertex(self, graph: Graph) -> None:
        """Give a random vertex a random colour in 1..max_degree."""
        if self.params.vertices < 1 or self.params.max_degree < 1:
            raise ValueError("instance has no vertices or no colours to draw from")
        vertex_id = self.rng.randint(0, self.params.vertices - 1)
        colour = self.rng.randint(1, self.params.max_degree)
        graph.vertices[vertex_id].colour = colour

    def solve_random(self, graph: Graph | None = None) -> Graph:
        if graph is None:
            solution = self._require_base_graph().copy()
        else:
            solution = graph.copy()
            solution.reset_colouring()
        self.solver.random_solution(solution)
        return solution

    def solve_greedy(self, graph: Graph | None = None) -> Graph:
        if graph is None:
            solution = self._require_base_graph().copy()
        else:
            solution = graph.copy()
            solution.reset_colouring()
        self.solver.greedy_solution(solution)
        return solution

    def solve_simulated_annealing(
        self, output_dir: str | PathLike[str] = "."
    ) -> Graph:
        solution = self._require_base_graph().copy()
        self.solver.simulated_annealing_solution(solution, output_dir)
        return solution


class Solver:
    """Constructive and annealing solvers working on a model's graphs."""

    def __init__(
        self,
        model: Model,
        sa_initial_temperature: float = 50_000.0,
        sa_cooling_rate: float = 0.995,
        sa_max_iterations: int = MAXIMUM_SA_ITERATIONS,
    ) -> None:
        self._model = model
        self.sa_initial_temperature = sa_initial_temperature
        self.sa_cooling_rate = sa_cooling_rate
        self.sa_max_iterations = sa_max_iterations

    def random_solution(self, graph: Graph) -> None:
        """Colour each vertex with a random colour its neighbours do not use."""
        model = self._model
        max_degree = model.params.max_degree
        palette = range(1, max_degree + 1)
        for vertex in graph.vertices:
            forbidden = set(model.get_forbidden_colours(vertex))
            if all(colour in forbidden for colour in palette):
                raise ValueError(
                    f"no colour in 1..{max_degree} is free for vertex {vertex.id + 1}"
                )
            while True:
                colour = model.rng.randint(1, max_degree)
                if colour not in forbidden:
                    vertex.colour = colour
                    break

    def greedy_solution(self, graph: Graph) -> None:
        """Colour each vertex with the first colour its neighbours do not use."""
        for vertex in graph.vertices:
            forbidden = self._model.get_forbidden_colours(vertex)
            vertex.colour = find_available_colour(forbidden)

    def simulated_annealing_solution(
        self, graph: Graph, output_dir: str | PathLike[str] = "."
    ) -> Solution:
        """Anneal a random colouring of ``graph`` in place; return the best solution.

        Appends a summary to ``csv/results/sa/sa_results_<name>.csv`` and writes
        the run's progress to ``csv/results/sa/sa_plot_<name>.csv`` under
        ``output_dir``.
        """
        model = self._model
        name = model.params.instance_name
        directory = Path(output_dir) / "csv" / "results" / "sa"
        results_path = directory / f"sa_results_{name}.csv"
        plot_path = directory / f"sa_plot_{name}.csv"

        with open(results_path, "a", encoding="utf-8") as results_file, open(
            plot_path, "w", encoding="utf-8"
        ) as plot_file:
            plot_file.write("it; best; temp\n")
            begin = time.perf_counter()
            temperature = self.sa_initial_temperature

            self.random_solution(graph)
            start_graph = graph.copy()
            best = Solution(start_graph, model.evaluate_fitness(start_graph))

            iteration = 0
            while (
                iteration < self.sa_max_iterations
                and best.fitness != model.params.optimum
            ):
                neighbour_graph = best.graph.copy()
                model.mutate_random_vertex(neighbour_graph)
                neighbour = Solution(
                    neighbour_graph, model.evaluate_fitness(neighbour_graph)
                )

                fitness_diff = best.fitness - neighbour.fitness
                probability = model.rng.random()

                if fitness_diff >= 0:
                    logger.info(
                        "|-> Iteration: %d\t||\tBest fitness: %d\t||\tTemperature: %g",
                        iteration,
                        best.fitness,
                        temperature,
                    )
                    best = neighbour
                elif temperature > 0 and probability < math.exp(
                    fitness_diff / temperature
                ):
                    best = neighbour

                if iteration % 10 == 0:
                    plot_file.write(f"{iteration}; {best.fitness}; {temperature:g}\n")

                temperature *= self.sa_cooling_rate
                iteration += 1

            elapsed = time.perf_counter() - begin
            results_file.write(
                f"{self.sa_initial_temperature:g}; {self.sa_cooling_rate:g}; "
                f"{best.fitness}; {elapsed:g}s\n"
            )
            plot_file.write(f"{iteration}; {best.fitness}; {temperature:g}\n")

        graph.vertices = best.graph.vertices
        return best