"""Genetic algorithm for the travelling thief problem."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from itertools import chain

from metaopt.ttp.instance import Node, Solution
from metaopt.ttp.model import Model

logger = logging.getLogger(__name__)

EXPECTED_WINNERS = 2
DIMENSION_DIVISOR = 4
GENERATION_LIMIT = 50_000
FFE_LIMIT = 500_000
K_RANDOM_FACTOR = 100
RANDOM_INITIALIZATION_PROBABILITY = 0.9


class PopulationType(Enum):
    """How the initial population is built."""

    RANDOM = "random"
    NEIGHBOUR = "neighbour"
    MIXED = "mixed"


def _fitness(solution: Solution) -> float:
    return solution.fitness


class GeneticSolver:
    """Evolves a population of tours with order crossover and inversion."""

    def __init__(
        self,
        model: Model,
        *,
        population_size: int = 200,
        subgroup_size: int = 7,
        crossing_probability: float = 0.8,
        mutation_probability: float = 0.1,
        generation_limit: int = GENERATION_LIMIT,
        ffe_limit: int = FFE_LIMIT,
        k_random_factor: int = K_RANDOM_FACTOR,
        population_type: PopulationType = PopulationType.MIXED,
    ) -> None:
        self._model = model
        self.population_size = population_size
        self.subgroup_size = subgroup_size
        self.crossing_probability = crossing_probability
        self.mutation_probability = mutation_probability
        self.generation_limit = generation_limit
        self.ffe_limit = ffe_limit
        self.k_random_factor = k_random_factor
        self.population_type = population_type
        self.fitness_evaluations = 0
        self.generation_number = 0
        self.population: list[Solution] = []
        self.best_solution: Solution | None = None
        self.worst_solution: Solution | None = None
        self.avg_fitness: float | None = None

    def describe_population(self) -> str:
        """One line per member of the population."""
        return "".join(
            f"Solution {position}: {solution}\n"
            for position, solution in enumerate(self.population)
        )

    def evaluate_population(self) -> None:
        """Record the population's best, worst and average fitness."""
        if not self.population:
            raise ValueError("population is empty")
        new_best = max(self.population, key=_fitness)
        new_worst = min(self.population, key=_fitness)
        new_avg = sum(s.fitness for s in self.population) / self.population_size

        if self.generation_number == 0 or self.best_solution is None:
            self.best_solution = new_best
            self.worst_solution = new_worst
            self.avg_fitness = new_avg

        if new_best.fitness > self.best_solution.fitness:
            self.best_solution = new_best
            self.worst_solution = new_worst
            self.avg_fitness = new_avg
            best = new_best
            logger.info(
                "|-> Generation number: %d\t||\tBest fitness: %.2f"
                "\tKnapsack value: %d\tTraveling time: %.2f"
                " \t||\tWorst fitness: %.2f\t||\tAverage fitness: %.2f"
                "\t||\tFFE: %d",
                self.generation_number,
                best.fitness,
                best.knapsack_value,
                best.knapsack_value - best.fitness,
                new_worst.fitness,
                new_avg,
                self.fitness_evaluations,
            )

    def solve(self) -> Solution:
        """Run the algorithm and return the best solution found."""
        self._initialize_population(self.population_type, self.population_size)
        self.evaluate_population()

        while (
            self.fitness_evaluations < self.ffe_limit
            and self.generation_number < self.generation_limit
        ):
            parents = self._tournament_selection(self.subgroup_size)
            offsprings = self._process_crossover(parents)
            self._evolve_population(parents, offsprings)
            self._process_mutation()
            self.evaluate_population()
            self.generation_number += 1

        assert self.best_solution is not None
        return self.best_solution

    def _initialize_population(
        self, population_type: PopulationType, size: int
    ) -> None:
        if population_type is PopulationType.RANDOM:
            self.population = [self._random_member() for _ in range(size)]
        elif population_type is PopulationType.NEIGHBOUR:
            self.population = [self._neighbour_member(pos) for pos in range(size)]
        else:
            self.population = [self._mixed_member(pos) for pos in range(size)]

    def _random_member(self) -> Solution:
        route = self._model.k_random_solution(self.k_random_factor).route
        return self._create_new_solution(route)

    def _neighbour_member(self, position: int) -> Solution:
        dimension = self._model.params.dimension
        if dimension < 1:
            raise ValueError("instance has no cities")
        start = position % dimension + 1
        return self._create_new_solution(self._model.nearest_neighbour(start))

    def _mixed_member(self, position: int) -> Solution:
        if self._model.rng.random() < RANDOM_INITIALIZATION_PROBABILITY:
            return self._random_member()
        return self._neighbour_member(position)

    def _tournament_selection(self, subgroup_size: int) -> list[Solution]:
        """Sort each subgroup in place by ascending fitness and keep its best two."""
        if subgroup_size < 1:
            raise ValueError("subgroup size must be positive")
        drop_point = max(0, subgroup_size - EXPECTED_WINNERS)
        winners: list[Solution] = []
        for start in range(0, len(self.population), subgroup_size):
            chunk = sorted(
                self.population[start : start + subgroup_size], key=_fitness
            )
            self.population[start : start + subgroup_size] = chunk
            winners.extend(chunk[drop_point:])
        return winners

    def _process_crossover(self, parents: list[Solution]) -> list[Solution]:
        if len(parents) % 2:
            raise ValueError("parents must come in pairs")
        dimension = self._model.params.dimension
        quarter = dimension // DIMENSION_DIVISOR
        rng = self._model.rng
        offsprings: list[Solution] = []
        for first, second in zip(parents[::2], parents[1::2]):
            if rng.random() < self.crossing_probability:
                first_point = rng.randint(quarter, dimension - quarter)
                second_point = rng.randint(quarter, dimension - quarter)
                if first_point > second_point:
                    first_point, second_point = second_point, first_point
                offsprings.append(
                    self._order_crossover(first, second, first_point, second_point)
                )
                offsprings.append(
                    self._order_crossover(second, first, first_point, second_point)
                )
            else:
                offsprings.extend((first, second))
        return offsprings

    def _evolve_population(
        self, parents: Sequence[Solution], offsprings: Sequence[Solution]
    ) -> None:
        count = len(parents)
        self.population[:count] = parents
        remaining = self._model.params.dimension - count
        limit = len(offsprings) if remaining < 0 else min(len(offsprings), remaining)
        limit = max(0, min(limit, len(self.population) - count))
        self.population[count : count + limit] = offsprings[:limit]

    def _process_mutation(self) -> None:
        model = self._model
        self.population = [
            self._create_new_solution(model.invert_mutation(solution.route))
            if model.rng.random() < self.mutation_probability
            else solution
            for solution in self.population
        ]

    def _order_crossover(
        self,
        first_parent: Solution,
        second_parent: Solution,
        first_point: int,
        second_point: int,
    ) -> Solution:
        first_route = first_parent.route
        dimension = len(first_route)
        if not 0 <= first_point <= second_point < dimension:
            raise IndexError(
                f"crossing points {first_point}..{second_point} outside the route"
            )
        offspring: list[Node | None] = [None] * dimension
        used: set[int] = set()
        for position in range(first_point, second_point + 1):
            offspring[position] = first_route[position]
            used.add(first_route[position].index)

        donors = (node for node in second_parent.route if node.index not in used)
        for position in chain(range(first_point), range(second_point + 1, dimension)):
            node = next(donors, None)
            if node is None:
                raise ValueError("parents do not visit the same cities")
            offspring[position] = node
            used.add(node.index)

        route = [node for node in offspring if node is not None]
        return self._create_new_solution(route)

    def _create_new_solution(self, route: Sequence[Node]) -> Solution:
        self.fitness_evaluations += 1
        return self._model.new_solution(route)