import io

import pytest

from metaopt.gcp.genetic import CrossoverType, GeneticSolver, PopulationType
from metaopt.gcp.model import Model, Solution

INSTANCE = [
    "c FILE: sample",
    "p edge 5 6",
    "o 3",
    "e 1 2",
    "e 1 3",
    "e 1 4",
    "e 1 5",
    "e 2 3",
    "e 4 5",
]

FLAT_INSTANCE = ["c FILE: flat", "p edge 6 0"]


def make_model(seed=7, lines=INSTANCE):
    model = Model(seed=seed)
    model.load_lines(lines)
    return model


def coloured(model, colours):
    graph = model.base_graph.copy()
    for vertex, colour in zip(graph.vertices, colours):
        vertex.colour = colour
    return graph


def population_of(model, fitnesses):
    return [Solution(model.base_graph.copy(), f) for f in fitnesses]


def test_variance_requires_evaluated_population():
    solver = GeneticSolver(make_model())
    with pytest.raises(ValueError):
        solver.variance()


def test_solve_produces_valid_colouring_and_files(tmp_path):
    (tmp_path / "csv" / "results" / "ga").mkdir(parents=True)
    model = make_model()
    solver = GeneticSolver(model, population_size=10, generation_limit=20)
    best = solver.solve(tmp_path)

    assert model.check_colouring_correctness(best.graph)
    assert best.fitness == len(set(best.graph.colours()))
    assert best.fitness >= 3
    assert solver.generation_number <= 20

    plot_lines = (
        tmp_path / "csv" / "results" / "ga" / "ga_plot_sample.csv"
    ).read_text().splitlines()
    assert plot_lines[0] == "gen; best; worst; avg"
    results_lines = (
        tmp_path / "csv" / "results" / "ga" / "ga_results_sample.csv"
    ).read_text().splitlines()
    assert len(results_lines) == 1
    fields = results_lines[0].split("; ")
    assert len(fields) == 6
    assert fields[0] == str(solver.generation_number)
    assert fields[1] == str(best.fitness)


def test_solve_is_deterministic_for_a_seed(tmp_path):
    (tmp_path / "csv" / "results" / "ga").mkdir(parents=True)
    outcomes = []
    for _ in range(2):
        solver = GeneticSolver(make_model(seed=11), population_size=10, generation_limit=15)
        best = solver.solve(tmp_path)
        outcomes.append((best.fitness, best.graph.colours(), solver.generation_number))
    assert outcomes[0] == outcomes[1]


def test_solve_without_output_directory_fails(tmp_path):
    solver = GeneticSolver(make_model(), population_size=4, generation_limit=2)
    with pytest.raises(FileNotFoundError):
        solver.solve(tmp_path / "missing")


def test_normalize_identical_partitions_gives_no_blocks():
    model = make_model()
    solver = GeneticSolver(model)
    first = coloured(model, [1, 2, 3, 1, 2])
    second = coloured(model, [3, 1, 2, 3, 1])
    blocks = solver._normalize_parent_colours(first, second)
    assert blocks == []
    assert second.colours() == first.colours()


def test_normalize_blocks_cover_exactly_the_mismatches():
    model = make_model()
    solver = GeneticSolver(model)
    first = coloured(model, [1, 2, 3, 1, 2])
    second = coloured(model, [1, 1, 2, 3, 3])
    blocks = solver._normalize_parent_colours(first, second)
    mismatches = {
        index
        for index, (a, b) in enumerate(zip(first.colours(), second.colours()))
        if a != b
    }
    covered = {index for block in blocks for index in block}
    assert covered == mismatches
    heads = [block[0] for block in blocks]
    assert len(heads) == len(set(heads))


def test_partition_crossover_counts_evaluations():
    model = make_model()
    solver = GeneticSolver(model)
    first = coloured(model, [1, 2, 3, 1, 2])
    second = coloured(model, [1, 1, 2, 3, 3])
    offsprings = solver._process_partition_crossover(first, second)
    assert solver.fitness_evaluations == len(offsprings)
    for offspring in offsprings:
        assert model.check_colouring_correctness(offspring.graph)
        assert offspring.fitness == len(set(offspring.graph.colours()))


def test_double_point_crossover_takes_middle_from_second_parent():
    model = make_model(lines=FLAT_INSTANCE)
    solver = GeneticSolver(model)
    first = coloured(model, [1, 2, 3, 4, 5, 6])
    second = coloured(model, [7, 8, 9, 10, 11, 12])
    offspring = solver._double_point_crossover(first, second, 2, 3)
    assert offspring.graph.colours() == [1, 2, 9, 10, 5, 6]
    assert offspring.fitness == len(set(offspring.graph.colours()))
    assert first.colours() == [1, 2, 3, 4, 5, 6]


def test_double_point_offsprings_are_complementary():
    model = make_model(seed=3, lines=FLAT_INSTANCE)
    solver = GeneticSolver(model, crossover_type=CrossoverType.DPOINT)
    first = coloured(model, [1, 2, 3, 4, 5, 6])
    second = coloured(model, [7, 8, 9, 10, 11, 12])
    one, two = solver._process_crossover(first, second)
    for a, b, x, y in zip(
        first.colours(), second.colours(), one.graph.colours(), two.graph.colours()
    ):
        assert {x, y} == {a, b}


def test_uniform_crossover_draws_each_colour_from_a_parent():
    model = make_model(seed=5, lines=FLAT_INSTANCE)
    solver = GeneticSolver(model, crossover_type=CrossoverType.UNIFORM)
    first = coloured(model, [1, 2, 3, 4, 5, 6])
    second = coloured(model, [7, 8, 9, 10, 11, 12])
    offsprings = solver._process_crossover(first, second)
    assert len(offsprings) == 2
    for offspring in offsprings:
        for a, b, c in zip(first.colours(), second.colours(), offspring.graph.colours()):
            assert c in (a, b)


def test_tournament_keeps_two_best_of_each_subgroup():
    model = make_model()
    solver = GeneticSolver(model, population_size=10, subgroup_size=5)
    solver.population = population_of(model, [5, 1, 4, 2, 3, 9, 8, 7, 6, 10])
    winners = solver._tournament_selection(5)
    assert [w.fitness for w in winners] == [2, 1, 7, 6]
    assert [s.fitness for s in solver.population] == [5, 4, 3, 2, 1, 10, 9, 8, 7, 6]
    assert winners[0].graph is not solver.population[3].graph


def test_tournament_rejects_empty_subgroups():
    solver = GeneticSolver(make_model())
    with pytest.raises(ValueError):
        solver._tournament_selection(0)


def test_crossover_without_probability_copies_parents():
    model = make_model()
    solver = GeneticSolver(model, crossing_probability=0.0)
    parents = [
        Solution(coloured(model, [1, 2, 3, 1, 2]), 3),
        Solution(coloured(model, [2, 3, 1, 2, 3]), 3),
    ]
    offsprings = solver._crossover_parents(parents)
    assert [o.graph.colours() for o in offsprings] == [p.graph.colours() for p in parents]
    assert [o.fitness for o in offsprings] == [3, 3]
    assert offsprings[0].graph is not parents[0].graph


def test_crossover_first_pair_passes_through_and_later_pairs_cross():
    model = make_model(seed=9, lines=FLAT_INSTANCE)
    solver = GeneticSolver(
        model, crossing_probability=1.0, crossover_type=CrossoverType.DPOINT
    )
    parents = [
        Solution(coloured(model, [1, 2, 3, 4, 5, 6]), 6),
        Solution(coloured(model, [7, 8, 9, 10, 11, 12]), 6),
        Solution(coloured(model, [13, 14, 15, 16, 17, 18]), 6),
        Solution(coloured(model, [19, 20, 21, 22, 23, 24]), 6),
    ]
    offsprings = solver._crossover_parents(parents)
    assert len(offsprings) == 4
    assert offsprings[0].graph.colours() == parents[0].graph.colours()
    assert offsprings[1].graph.colours() == parents[1].graph.colours()
    for offspring in offsprings[2:]:
        for c, a, b in zip(
            offspring.graph.colours(),
            parents[2].graph.colours(),
            parents[3].graph.colours(),
        ):
            assert c in (a, b)


def test_crossover_rejects_odd_number_of_parents():
    model = make_model()
    solver = GeneticSolver(model)
    with pytest.raises(ValueError):
        solver._crossover_parents(population_of(model, [1, 2, 3]))


def test_evolve_population_limited_by_vertex_count():
    model = make_model()
    solver = GeneticSolver(model, population_size=10)
    solver.population = population_of(model, range(10))
    parents = population_of(model, [100, 101, 102, 103])
    offsprings = population_of(model, [200, 201, 202, 203])
    solver._evolve_population(parents, offsprings)
    assert [s.fitness for s in solver.population] == [
        100, 101, 102, 103, 200, 5, 6, 7, 8, 9,
    ]


def test_mutation_never_when_probability_zero():
    model = make_model()
    solver = GeneticSolver(model, population_size=6, mutation_probability=0.0)
    solver._initialize_population(PopulationType.GREEDY, 6)
    before = [(s.fitness, s.graph.colours()) for s in solver.population]
    solver._process_mutation()
    assert [(s.fitness, s.graph.colours()) for s in solver.population] == before


def test_mutation_always_keeps_fitness_consistent():
    model = make_model(seed=2)
    solver = GeneticSolver(model, population_size=6, mutation_probability=1.0)
    solver._initialize_population(PopulationType.GREEDY, 6)
    evaluations = solver.fitness_evaluations
    solver._process_mutation()
    assert solver.fitness_evaluations == evaluations
    for solution in solver.population:
        assert model.check_colouring_correctness(solution.graph)
        assert solution.fitness == len(set(solution.graph.colours()))


def test_greedy_initialization_matches_greedy_solver():
    model = make_model()
    solver = GeneticSolver(model, population_size=4)
    solver._initialize_population(PopulationType.GREEDY, 4)
    expected = model.solve_greedy().colours()
    assert solver.fitness_evaluations == 4
    assert all(s.graph.colours() == expected for s in solver.population)
    solver._evaluate_population()
    assert solver.variance() == 0.0


def test_mixed_initialization_gives_valid_colourings():
    model = make_model(seed=4)
    solver = GeneticSolver(model, population_size=8)
    solver._initialize_population(PopulationType.MIXED, 8)
    assert len(solver.population) == 8
    assert all(model.check_colouring_correctness(s.graph) for s in solver.population)


def test_evaluate_population_tracks_extremes_and_writes_plot():
    model = make_model()
    solver = GeneticSolver(model, population_size=2)
    solver.population = population_of(model, [3, 5])
    plot = io.StringIO()
    solver._evaluate_population(plot)
    assert plot.getvalue() == "0; 3; 5; 4\n"
    assert solver.best_solution.fitness == 3
    assert solver.worst_solution.fitness == 5

    solver.generation_number = 1
    solver.population = population_of(model, [2, 7])
    solver._evaluate_population(plot)
    assert solver.best_solution.fitness == 2
    assert solver.worst_solution.fitness == 7

    solver.generation_number = 2
    solver.population = population_of(model, [4, 4])
    solver._evaluate_population(plot)
    assert solver.best_solution.fitness == 2
    assert solver.worst_solution.fitness == 7
    assert solver.avg_fitness == 4.0


def test_variance_needs_two_members():
    model = make_model()
    solver = GeneticSolver(model, population_size=1)
    solver.population = population_of(model, [3])
    solver._evaluate_population()
    with pytest.raises(ValueError):
        solver.variance()


def test_describe_population_lists_each_solution():
    model = make_model()
    solver = GeneticSolver(model)
    solver.population = population_of(model, [3, 4])
    lines = solver.describe_population().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("Solution 0: Graph: [")
    assert lines[1].endswith("fitness: 4")