"""Genetic algorithm for the graph colouring problem."""

from __future__ import annotations

import logging
import math
import time
from collections import Counter
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import TextIO

from metaopt.gcp.graph import Graph
from metaopt.gcp.model import Model, Solution

logger = logging.getLogger(__name__)

EXPECTED_WINNERS = 2
DIMENSION_DIVISOR = 4
PRINT_INFO_THRESHOLD = 100
PLOT_INTERVAL = 10
GENERATION_LIMIT = 100_000
FFE_LIMIT = 200_000
RANDOM_INITIALIZATION_PROBABILITY = 0.9

BuildingBlocks = list[list[int]]


class CrossoverType(Enum):
    """How two parent colourings are combined."""

    DPOINT = "dpoint"
    UNIFORM = "uniform"
    PARTITION = "partition"


class PopulationType(Enum):
    """How the initial population is built."""

    RANDOM = "random"
    GREEDY = "greedy"
    MIXED = "mixed"


def _fitness(solution: Solution) -> int:
    return solution.fitness


def _snapshot(solution: Solution) -> Solution:
    return Solution(solution.graph.copy(), solution.fitness)


class GeneticSolver:
    """Evolves a population of colourings towards fewer colours."""

    def __init__(
        self,
        model: Model,
        *,
        population_size: int = 100,
        subgroup_size: int = 5,
        crossing_probability: float = 0.4,
        mutation_probability: float = 0.2,
        crossover_type: CrossoverType = CrossoverType.PARTITION,
        generation_limit: int = GENERATION_LIMIT,
        ffe_limit: int = FFE_LIMIT,
    ) -> None:
        self._model = model
        self.population_size = population_size
        self.subgroup_size = subgroup_size
        self.crossing_probability = crossing_probability
        self.mutation_probability = mutation_probability
        self.crossover_type = crossover_type
        self.generation_limit = generation_limit
        self.ffe_limit = ffe_limit
        self.fitness_evaluations = 0
        self.generation_number = 0
        self.population: list[Solution] = []
        self.best_solution: Solution | None = None
        self.worst_solution: Solution | None = None
        self.avg_fitness: float | None = None

    # ------------------------------------------------------------------ reports

    def describe_population(self) -> str:
        """One line per member of the population."""
        return "".join(
            f"Solution {position}: {solution}\n"
            for position, solution in enumerate(self.population)
        )

    def _generation_info(self) -> str:
        if self.best_solution is None or self.worst_solution is None:
            raise ValueError("population has not been evaluated yet")
        return (
            f"|-> Generation number: {self.generation_number}"
            f"\t||\tBest fitness: {self.best_solution.fitness}"
            f" \t||\tWorst fitness: {self.worst_solution.fitness}"
            f"\t||\tAverage fitness: {self.avg_fitness:.2f}"
            f"\t||\tFFE: {self.fitness_evaluations}\n"
        )

    def variance(self) -> float:
        """Sample standard deviation of the population's fitness."""
        if self.avg_fitness is None or not self.population:
            raise ValueError("population has not been evaluated yet")
        if self.population_size < 2:
            raise ValueError("population size must be at least 2")
        total = sum((s.fitness - self.avg_fitness) ** 2 for s in self.population)
        return math.sqrt(total / (self.population_size - 1))

    # ------------------------------------------------------------- termination

    def _reached_optimum(self) -> bool:
        return (
            self.best_solution is not None
            and self.best_solution.fitness == self._model.params.optimum
        )

    def _reached_ffe_limit(self) -> bool:
        return self.fitness_evaluations >= self.ffe_limit

    def _reached_generation_limit(self) -> bool:
        return self.generation_number >= self.generation_limit

    # -------------------------------------------------------------------- main

    def solve(self, output_dir: str | PathLike[str] = ".") -> Solution:
        """Run the algorithm and return the best solution found.

        Appends a summary to ``csv/results/ga/ga_results_<name>.csv`` and writes
        the run's progress to ``csv/results/ga/ga_plot_<name>.csv`` under
        ``output_dir``.
        """
        name = self._model.params.instance_name
        directory = Path(output_dir) / "csv" / "results" / "ga"
        results_path = directory / f"ga_results_{name}.csv"
        plot_path = directory / f"ga_plot_{name}.csv"

        with open(results_path, "a", encoding="utf-8") as results_file, open(
            plot_path, "w", encoding="utf-8"
        ) as plot_file:
            plot_file.write("gen; best; worst; avg\n")
            begin = time.perf_counter()

            self._initialize_population(PopulationType.RANDOM, self.population_size)
            self._evaluate_population(plot_file)

            while not (
                self._reached_ffe_limit()
                or self._reached_generation_limit()
                or self._reached_optimum()
            ):
                parents = self._tournament_selection(self.subgroup_size)
                offsprings = self._crossover_parents(parents)
                self._evolve_population(parents, offsprings)
                self._process_mutation()
                self._evaluate_population(plot_file)
                self.generation_number += 1

            logger.info(self._generation_info())
            elapsed = time.perf_counter() - begin

            best, worst = self.best_solution, self.worst_solution
            assert best is not None and worst is not None
            results_file.write(
                f"{self.generation_number}; {best.fitness}; {worst.fitness}; "
                f"{self.avg_fitness:g}; {self.variance():g}; {elapsed:g}s\n"
            )
            plot_file.write(
                f"{self.generation_number}; {best.fitness}; {worst.fitness}; "
                f"{self.avg_fitness:g}\n"
            )

        return best

    def _evaluate_population(self, plot_file: TextIO | None = None) -> None:
        if not self.population:
            raise ValueError("population is empty")
        new_best = min(self.population, key=_fitness)
        new_worst = max(self.population, key=_fitness)
        new_avg = sum(s.fitness for s in self.population) / self.population_size

        if self.generation_number == 0 or self.best_solution is None:
            self.best_solution = _snapshot(new_best)
            self.worst_solution = _snapshot(new_worst)
            self.avg_fitness = new_avg

        if new_best.fitness < self.best_solution.fitness:
            self.best_solution = _snapshot(new_best)
            logger.info(self._generation_info())

        assert self.worst_solution is not None
        if new_worst.fitness > self.worst_solution.fitness:
            self.worst_solution = _snapshot(new_worst)

        self.avg_fitness = new_avg

        if (
            self.generation_number % PRINT_INFO_THRESHOLD == 0
            and self.generation_number != 0
        ):
            logger.info(self._generation_info())

        if plot_file is not None and self.generation_number % PLOT_INTERVAL == 0:
            plot_file.write(
                f"{self.generation_number}; {self.best_solution.fitness}; "
                f"{self.worst_solution.fitness}; {self.avg_fitness:g}\n"
            )

    # ---------------------------------------------------------- initialisation

    def _initialize_population(
        self, population_type: PopulationType, size: int
    ) -> None:
        model = self._model
        if population_type is PopulationType.RANDOM:
            self.population = [
                self._create_new_solution(model.solve_random()) for _ in range(size)
            ]
        elif population_type is PopulationType.GREEDY:
            self.population = [
                self._create_new_solution(model.solve_greedy()) for _ in range(size)
            ]
        else:
            self.population = [self._mixed_member() for _ in range(size)]

    def _mixed_member(self) -> Solution:
        model = self._model
        if model.rng.random() < RANDOM_INITIALIZATION_PROBABILITY:
            return self._create_new_solution(model.solve_random())
        return self._create_new_solution(model.solve_greedy())

    # --------------------------------------------------------------- selection

    def _tournament_selection(self, subgroup_size: int) -> list[Solution]:
        """Sort each subgroup worst-first in place and keep its two best."""
        if subgroup_size < 1:
            raise ValueError("subgroup size must be positive")
        drop_point = max(0, subgroup_size - EXPECTED_WINNERS)
        winners: list[Solution] = []
        for start in range(0, len(self.population), subgroup_size):
            chunk = sorted(
                self.population[start : start + subgroup_size],
                key=_fitness,
                reverse=True,
            )
            self.population[start : start + subgroup_size] = chunk
            winners.extend(_snapshot(solution) for solution in chunk[drop_point:])
        return winners

    # --------------------------------------------------------------- crossover

    def _crossover_parents(self, parents: list[Solution]) -> list[Solution]:
        if len(parents) % 2:
            raise ValueError("parents must come in pairs")
        offsprings: list[Solution] = []
        for first_source, second_source in zip(parents[::2], parents[1::2]):
            probability = self._model.rng.random()
            first_parent = _snapshot(first_source)
            second_parent = _snapshot(second_source)

            if probability < self.crossing_probability:
                new_offsprings = self._process_crossover(
                    first_parent.graph, second_parent.graph
                )
                if offsprings:
                    offsprings.extend(new_offsprings)
                else:
                    offsprings.extend((first_parent, second_parent))
            else:
                offsprings.extend((first_parent, second_parent))
        return offsprings

    def _process_crossover(self, first: Graph, second: Graph) -> list[Solution]:
        if self.crossover_type is CrossoverType.DPOINT:
            return self._process_double_point_crossover(first, second)
        if self.crossover_type is CrossoverType.UNIFORM:
            return self._process_uniform_crossover(first, second)
        return self._process_partition_crossover(first, second)

    def _process_double_point_crossover(
        self, first: Graph, second: Graph
    ) -> list[Solution]:
        dimension = self._model.params.vertices
        quarter = dimension // DIMENSION_DIVISOR
        rng = self._model.rng
        first_point = rng.randint(quarter, dimension - quarter)
        second_point = rng.randint(quarter, dimension - quarter)
        if first_point > second_point:
            first_point, second_point = second_point, first_point
        return [
            self._double_point_crossover(first, second, first_point, second_point),
            self._double_point_crossover(second, first, first_point, second_point),
        ]

    def _double_point_crossover(
        self, first: Graph, second: Graph, first_point: int, second_point: int
    ) -> Solution:
        offspring = first.copy()
        for position, (vertex, first_colour, second_colour) in enumerate(
            zip(offspring.vertices, first.colours(), second.colours())
        ):
            inside = first_point <= position <= second_point
            vertex.colour = second_colour if inside else first_colour
        return self._create_new_solution(offspring)

    def _process_uniform_crossover(
        self, first: Graph, second: Graph
    ) -> list[Solution]:
        return [
            self._uniform_crossover(first, second),
            self._uniform_crossover(second, first),
        ]

    def _uniform_crossover(self, first: Graph, second: Graph) -> Solution:
        offspring = first.copy()
        rng = self._model.rng
        for vertex, first_vertex, second_vertex in zip(
            offspring.vertices, first.vertices, second.vertices
        ):
            vertex.colour = (
                first_vertex.colour if rng.random() <= 0.5 else second_vertex.colour
            )
        return self._create_new_solution(offspring)

    def _process_partition_crossover(
        self, first: Graph, second: Graph
    ) -> list[Solution]:
        offsprings: list[Solution] = []
        for block in self._normalize_parent_colours(first, second):
            offspring = second.copy()
            for index in block:
                offspring.vertices[index].colour = first.vertices[index].colour
            offsprings.append(self._create_new_solution(offspring))
        return offsprings

    def _normalize_parent_colours(self, first: Graph, second: Graph) -> BuildingBlocks:
        """Rename the second parent's colours to match the first's classes.

        Recolours ``second`` in place and returns the groups of vertex indices
        where the parents still differ.
        """
        first_colours = first.colours()
        second_colours = second.colours()
        first_occurrences = Counter(first_colours)
        second_occurrences = Counter(second_colours)
        pair_counts = Counter(zip(first_colours, second_colours))
        rates = {
            pair: pair_counts[pair] / first_occurrences[pair[0]]
            for pair in sorted(pair_counts)
        }

        order = sorted(
            ((count, colour) for colour, count in first_occurrences.items()),
            reverse=True,
        )
        free = set(second_occurrences)
        unmatched = set(first_occurrences)
        colours_to_use: list[tuple[int, int]] = []

        for _, colour in order:
            matching = [
                (pair, rate)
                for pair, rate in rates.items()
                if pair[0] == colour and pair[1] in free
            ]
            if not matching:
                continue
            (first_colour, second_colour), _ = max(matching, key=lambda item: item[1])
            free.discard(second_colour)
            unmatched.discard(first_colour)
            colours_to_use.append((first_colour, second_colour))

        if free and unmatched:
            for colour in sorted(unmatched):
                if not free:
                    break
                first_free = min(free)
                colours_to_use.append((colour, first_free))
                free.discard(first_free)

        replacement: dict[int, int] = {}
        for first_colour, second_colour in colours_to_use:
            replacement.setdefault(second_colour, first_colour)

        mismatches: list[int] = []
        for index, (first_vertex, second_vertex) in enumerate(
            zip(first.vertices, second.vertices)
        ):
            if second_vertex.colour in replacement:
                second_vertex.colour = replacement[second_vertex.colour]
            if first_vertex.colour != second_vertex.colour:
                mismatches.append(index)

        positions = {mismatch: place for place, mismatch in enumerate(mismatches)}
        used = [False] * len(mismatches)
        blocks: BuildingBlocks = []
        for place, mismatch in enumerate(mismatches):
            if used[place]:
                continue
            block = [mismatch]
            used[place] = True
            for neighbour in first.vertices[mismatch].neighbours:
                found = positions.get(neighbour.id)
                if found is not None:
                    block.append(neighbour.id)
                    used[found] = True
            blocks.append(block)
        return blocks

    # --------------------------------------------------------------- evolution

    def _evolve_population(
        self, parents: list[Solution], offsprings: list[Solution]
    ) -> None:
        count = len(parents)
        self.population[:count] = parents
        limit = min(len(offsprings), len(self.population) - count)
        remaining = self._model.params.vertices - count
        if remaining >= 0:
            limit = min(limit, remaining)
        limit = max(limit, 0)
        self.population[count : count + limit] = offsprings[:limit]

    def _process_mutation(self) -> None:
        model = self._model
        for solution in self.population:
            if model.rng.random() < self.mutation_probability:
                model.mutate_random_vertex(solution.graph)
                solution.fitness = model.evaluate_fitness(solution.graph)

    def _create_new_solution(self, graph: Graph) -> Solution:
        self.fitness_evaluations += 1
        return Solution(graph, self._model.evaluate_fitness(graph))