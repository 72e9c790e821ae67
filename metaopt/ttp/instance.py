"""Travelling thief problem instances: data types, parsing and formatting."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from os import PathLike

HEADER_SIZE = 8
COORD_SECTION_START = 9


class ProblemType(Enum):
    """Correlation type of the knapsack part of an instance."""

    UNCORRELATED = "UNCORRELATED"
    BOUNDED = "BOUNDED"
    SIMILAR = "SIMILAR"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Node:
    """A city with its 1-based index and coordinates."""

    index: int = 0
    x: float = 0.0
    y: float = 0.0


@dataclass
class Item:
    """A knapsack item placed at a city."""

    index: int = 0
    node_index: int = 0
    weight: int = 0
    profit: int = 0
    ratio: float = 0.0


@dataclass
class ModelParams:
    """Header parameters of an instance."""

    instance_name: str = ""
    problem_type: ProblemType = ProblemType.BOUNDED
    dimension: int = 0
    num_of_items: int = 0
    capacity: int = 0
    min_speed: float = 0.0
    max_speed: float = 0.0
    renting_ratio: float = 0.0
    speed_to_weight_ratio: float = 0.0


@dataclass(order=True)
class Solution:
    """A route with its packing plan; solutions compare by fitness."""

    route: list[Node] = field(default_factory=list, compare=False)
    penalized_items: list[Item] = field(default_factory=list, compare=False)
    packing_plan: list[bool] = field(default_factory=list, compare=False)
    knapsack_weight: int = field(default=0, compare=False)
    knapsack_value: int = field(default=0, compare=False)
    fitness: float = 0.0

    def __str__(self) -> str:
        return format_solution(self)


@dataclass
class Instance:
    """A parsed instance: parameters, cities and items."""

    params: ModelParams = field(default_factory=ModelParams)
    nodes: list[Node] = field(default_factory=list)
    items: list[Item] = field(default_factory=list)


def _header_value(line: str) -> str:
    _, tab, value = line.partition("\t")
    return value.strip() if tab else line.strip()


def _problem_type(line: str) -> ProblemType:
    _, colon, value = line.partition(":")
    text = (value if colon else line).strip()
    if text == "uncorrelated":
        return ProblemType.UNCORRELATED
    if text == "uncorrelated, similar weights":
        return ProblemType.SIMILAR
    return ProblemType.BOUNDED


def _tokens(line: str) -> list[str]:
    tokens = line.split("\t")
    if tokens and tokens[-1] == "":
        tokens.pop()
    return tokens


def _parse_header(params: ModelParams, number: int, line: str) -> None:
    value = _header_value(line)
    try:
        if number == 0:
            params.instance_name = value
        elif number == 1:
            params.problem_type = _problem_type(line)
        elif number == 2:
            params.dimension = int(value)
        elif number == 3:
            params.num_of_items = int(value)
        elif number == 4:
            params.capacity = int(value)
        elif number == 5:
            params.min_speed = float(value)
        elif number == 6:
            params.max_speed = float(value)
        elif number == 7:
            params.renting_ratio = float(value)
            if params.capacity <= 0:
                raise ValueError("knapsack capacity must be positive")
            params.speed_to_weight_ratio = (
                params.max_speed - params.min_speed
            ) / params.capacity
    except ValueError as error:
        raise ValueError(f"malformed header line {number}: {line!r}") from error


def _parse_node(line: str) -> Node:
    tokens = _tokens(line)
    try:
        return Node(int(tokens[0]), float(tokens[1]), float(tokens[2]))
    except (IndexError, ValueError) as error:
        raise ValueError(f"malformed node line: {line!r}") from error


def _parse_item(line: str) -> Item:
    tokens = _tokens(line)
    try:
        index, profit, weight, node_index = (int(tokens[i]) for i in range(4))
    except (IndexError, ValueError) as error:
        raise ValueError(f"malformed item line: {line!r}") from error
    if weight == 0:
        raise ValueError(f"item {index} has zero weight")
    return Item(
        index=index,
        node_index=node_index,
        weight=weight,
        profit=profit,
        ratio=profit / weight,
    )


def parse_instance(lines: Iterable[str]) -> Instance:
    """Parse the lines of a travelling thief instance."""
    instance = Instance()
    params = instance.params
    coord_section_end = COORD_SECTION_START
    for number, raw_line in enumerate(lines):
        line = raw_line.rstrip("\r\n")
        if number < HEADER_SIZE:
            _parse_header(params, number, line)
            if number == 2:
                coord_section_end = COORD_SECTION_START + params.dimension + 1
        elif COORD_SECTION_START < number < coord_section_end:
            instance.nodes.append(_parse_node(line))
        elif number > coord_section_end:
            if not line.strip():
                continue
            instance.items.append(_parse_item(line))
    return instance


def load_instance(path: str | PathLike[str]) -> Instance:
    """Read and parse an instance file."""
    with open(path, encoding="utf-8") as stream:
        return parse_instance(stream)


def format_route(route: Sequence[Node]) -> str:
    return "[" + ", ".join(str(node.index) for node in route) + "]"


def format_items(items: Sequence[Item]) -> str:
    body = ", ".join(
        f"\nItem({item.index}): [node_idx: {item.node_index}, "
        f"profit: {item.profit}, weight: {item.weight}, ratio: {item.ratio:g}]"
        for item in items
    )
    return f"[{body}]"


def format_packing_plan(packing_plan: Sequence[bool]) -> str:
    return "[" + ", ".join(str(int(packed)) for packed in packing_plan) + "]"


def format_solution(solution: Solution) -> str:
    return (
        f"Route: {format_route(solution.route)}, "
        f"packing plan: {format_packing_plan(solution.packing_plan)}, "
        f"fitness: {solution.fitness:g}"
    )