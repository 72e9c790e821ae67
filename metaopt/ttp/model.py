"""Travelling thief model: distances, knapsack packing, fitness and heuristics."""

from __future__ import annotations

import math
import random
from collections.abc import Sequence
from dataclasses import replace
from os import PathLike

from metaopt.ttp.instance import (
    Instance,
    Item,
    ModelParams,
    Node,
    Solution,
    format_items,
    format_route,
    load_instance,
)

MAXIMUM_LOAD_THRESHOLD = 0.67
INITIAL_SA_TEMPERATURE = 1_000_000.0
COOLING_RATE = 0.9999
MAXIMUM_SA_ITERATIONS = 1_000_000
WORST_FITNESS = -999_999_999.0


def _ln_factor(iteration: int, dimension: int) -> float:
    return math.log(iteration) / math.log(dimension)


class Model:
    """A travelling thief instance and the operations on its solutions."""

    def __init__(self, seed: int | None = None) -> None:
        self.params = ModelParams()
        self.nodes: list[Node] = []
        self.items: list[Item] = []
        self.weights: list[list[float]] = []
        self.rng = random.Random(seed)

    # ----------------------------------------------------------------- loading

    def load_file(self, path: str | PathLike[str]) -> None:
        """Read an instance file into the model."""
        self.load_instance(load_instance(path))

    def load_instance(self, instance: Instance) -> None:
        """Take over a parsed instance; the distance matrix starts zeroed."""
        self.params = instance.params
        self.nodes = list(instance.nodes)
        self.items = list(instance.items)
        dimension = self.params.dimension
        self.weights = [[0.0] * dimension for _ in range(dimension)]

    def create_weight_matrix(self) -> None:
        """Fill the matrix with Euclidean distances between distinct cities."""
        dimension = self.params.dimension
        if len(self.nodes) < dimension:
            raise ValueError("instance has fewer cities than its dimension")
        cities = self.nodes[:dimension]
        self.weights = [
            [
                math.dist((neighbour.x, neighbour.y), (node.x, node.y))
                if node.index != neighbour.index
                else 0.0
                for neighbour in cities
            ]
            for node in cities
        ]

    # ----------------------------------------------------------------- reports

    def describe(self) -> str:
        params = self.params
        return (
            "-> Model parameters:"
            f"\n|-> Name: {params.instance_name}"
            f"\n|-> Problem_type: {params.problem_type}"
            f"\n|-> Dimension: {params.dimension}"
            f"\n|-> Num_of_items: {params.num_of_items}"
            f"\n|-> Capacity: {params.capacity}"
            f"\n|-> Min_speed: {params.min_speed:g}"
            f"\n|-> Max_speed: {params.max_speed:g}"
            f"\n|-> Renting_ratio: {params.renting_ratio:g}"
            f"\n|-> Speed_to_weight_ratio: {params.speed_to_weight_ratio:g}"
            f"\n|-> Nodes size: {len(self.nodes)}"
            f"\n\\-> Items size: {len(self.items)}"
        )

    def describe_nodes(self) -> str:
        return format_route(self.nodes)

    def describe_items(self) -> str:
        return format_items(self.items)

    def describe_weight_matrix(self) -> str:
        return "".join(
            f"\nNode({position})\t[" + ", ".join(f"{w:g}" for w in row) + "]"
            for position, row in enumerate(self.weights)
        )

    # ----------------------------------------------------------------- fitness

    def _distance(self, source: int, destination: int) -> float:
        return self.weights[source - 1][destination - 1]

    @staticmethod
    def _legs(route: Sequence[Node]) -> list[tuple[int, int]]:
        indices = [node.index for node in route]
        return list(zip(indices, indices[1:] + indices[:1]))

    def objective_function(self, route: Sequence[Node]) -> float:
        """Length of the closed tour."""
        return sum(self._distance(s, d) for s, d in self._legs(route))

    def evaluate_solution_fitness(self, solution: Solution) -> float:
        """Knapsack value minus travelling time; accumulates the carried weight."""
        objective = float(solution.knapsack_value)
        for source, destination in self._legs(solution.route):
            distance = self._distance(source, destination)
            item_weight = 0
            if source != 1 and solution.packing_plan[source - 2]:
                item_weight = self.items[source - 2].weight
            solution.knapsack_weight += item_weight
            velocity = (
                self.params.max_speed
                - solution.knapsack_weight * self.params.speed_to_weight_ratio
            )
            objective -= distance / velocity
        return objective

    def new_solution(self, route: Sequence[Node]) -> Solution:
        """Pack greedily for ``route`` and evaluate the result."""
        solution = Solution(route=list(route))
        solution.penalized_items = self.penalize_item_values(solution.route)
        solution.packing_plan = self.solve_knapsack_greedy(solution)
        solution.fitness = self.evaluate_solution_fitness(solution)
        return solution

    # -------------------------------------------------------------- heuristics

    def k_random_solution(self, k_factor: int) -> Solution:
        """Best of ``k_factor`` successive random shuffles of the cities."""
        route = list(self.nodes)
        best = Solution(fitness=WORST_FITNESS)
        for _ in range(k_factor):
            self.rng.shuffle(route)
            candidate = self.new_solution(route)
            if best < candidate:
                best = candidate
        return best

    def nearest_neighbour(self, starting_node_index: int) -> list[Node]:
        """Tour built by always moving to the closest unvisited city."""
        dimension = self.params.dimension
        if not 1 <= starting_node_index <= dimension:
            raise IndexError(f"starting city {starting_node_index} out of range")
        start_position = starting_node_index - 1
        visited = [False] * dimension
        visited[start_position] = True
        route = [self.nodes[start_position]]
        best_position = 0
        for _ in range(dimension - 1):
            row = self.weights[route[-1].index - 1]
            best_distance = math.inf
            for position, seen in enumerate(visited):
                if not seen and row[position] < best_distance:
                    best_position = position
                    best_distance = row[position]
            route.append(self.nodes[best_position])
            visited[best_position] = True
        return route

    def extended_nearest_neighbour(self) -> Solution:
        """Best nearest-neighbour tour over every starting city."""
        best = Solution(fitness=WORST_FITNESS)
        for start in range(1, self.params.dimension + 1):
            candidate = self.new_solution(self.nearest_neighbour(start))
            if best < candidate:
                best = candidate
        return best

    def simulated_annealing(self, iterations: int = MAXIMUM_SA_ITERATIONS) -> Solution:
        """Anneal from the cities in file order using inversion moves."""
        temperature = INITIAL_SA_TEMPERATURE
        best = self.new_solution(self.nodes)
        for _ in range(iterations):
            neighbour = self.new_solution(self.invert_mutation(best.route))
            fitness_diff = neighbour.fitness - best.fitness
            probability = self.rng.random()
            if fitness_diff >= 0:
                best = neighbour
            elif temperature > 0 and probability < math.exp(fitness_diff / temperature):
                best = neighbour
            temperature *= COOLING_RATE
        return best

    # ---------------------------------------------------------------- knapsack

    def solve_knapsack_greedy(self, solution: Solution) -> list[bool]:
        """Pack by descending penalised ratio while the load stays light enough.

        Sorts ``solution.penalized_items`` in place and sets its knapsack value.
        """
        capacity = self.params.capacity
        ratio = self.params.speed_to_weight_ratio
        solution.penalized_items.sort(key=lambda item: item.ratio, reverse=True)
        plan = [False] * len(self.items)
        weight = 0
        profit = 0
        for item in solution.penalized_items:
            possible = weight + item.weight
            if possible <= capacity and possible * ratio < MAXIMUM_LOAD_THRESHOLD:
                if item.node_index < 2:
                    raise IndexError(f"item {item.index} lies at the starting city")
                profit += item.profit
                weight += item.weight
                plan[item.node_index - 2] = True
        solution.knapsack_value = profit
        return plan

    def solve_knapsack_dp(self, solution: Solution) -> list[bool]:
        """Exact 0/1 knapsack on penalised profits; sets the knapsack value."""
        capacity = self.params.capacity
        items = self.items
        profits = [item.profit for item in solution.penalized_items]
        table = [[0] * (capacity + 1)]
        for item, profit in zip(items, profits):
            previous = table[-1]
            table.append(
                [
                    max(profit + previous[w - item.weight], previous[w])
                    if w > 0 and item.weight <= w
                    else previous[w]
                    for w in range(capacity + 1)
                ]
            )
        plan = [False] * len(items)
        current_profit = table[len(items)][capacity]
        solution.knapsack_value = current_profit
        current_weight = capacity
        for position in range(len(items), 0, -1):
            if current_profit <= 0:
                break
            if current_profit != table[position - 1][current_weight]:
                item = items[position - 1]
                plan[item.index - 1] = True
                current_profit -= profits[position - 1]
                current_weight -= item.weight
        return plan

    # ---------------------------------------------------------------- mutation

    def invert_mutation(self, route: Sequence[Node]) -> list[Node]:
        """Copy of ``route`` with a random section reversed."""
        first = self.rng.randint(0, self.params.dimension)
        second = self.rng.randint(0, self.params.dimension)
        if first > second:
            first, second = second, first
        inverted = list(route)
        inverted[first:second] = inverted[first:second][::-1]
        return inverted

    def penalize_item_values(self, route: Sequence[Node]) -> list[Item]:
        """Copies of the items with profits scaled down the earlier they are picked."""
        penalized = [replace(item) for item in self.items]
        size = len(route)
        for position, node in enumerate(route):
            if node.index == 1:
                continue
            item = penalized[node.index - 2]
            item.profit = int(item.profit * _ln_factor(position + 2, size + 1))
            item.ratio = item.profit / item.weight
        return penalized