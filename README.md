# metaopt

Metaheuristic solvers for two combinatorial optimisation problems:

- **Graph colouring** (`metaopt.gcp`): reads DIMACS `.col` instances and
  colours them with random, greedy, simulated-annealing or genetic
  strategies. The fitness of a colouring is the number of colours it uses;
  a colouring with conflicts is repaired in place before it is scored.
- **Travelling thief problem** (`metaopt.ttp`): reads `.ttp` instances,
  builds the Euclidean distance matrix, and searches for a route and
  packing plan with k-random sampling, nearest-neighbour construction,
  simulated annealing or a genetic algorithm. Items are packed greedily by
  a profit-to-weight ratio whose profit is scaled down the earlier on the
  route the thief reaches them; a dynamic-programming knapsack is also
  available.

The package needs nothing beyond the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
metaopt-gcp [NAME ...] [--directory DIR]
```

reads `<DIR>/<NAME>.col` for each name (by default `./instances` and the
instances `queen6_6`, `queen7_7`, `queen8_8`, `myciel5`, `myciel6`,
`zeroin.i.1`) and prints each instance's parameters: name, vertex and edge
counts, maximum degree and known optimum. It exits with status 1 if a file
cannot be opened or read.

```
metaopt-ttp [INSTANCE] [--iterations N] [--seed S]
```

loads a travelling-thief instance (by default
`./berlin52/berlin52_n51_uncorr_05.ttp`), prints its parameters, runs
simulated annealing for `N` iterations (default 1,000,000) and prints the
best route, its fitness, the knapsack value, the travelling time and the
time taken.

## Library use

Graph colouring:

```python
from metaopt.gcp.model import Model
from metaopt.gcp.genetic import GeneticSolver, CrossoverType

model = Model(seed=1)
model.load_file("instances/queen6_6.col")
print(model.describe())

colouring = model.solve_greedy()
print(model.evaluate_fitness(colouring), model.get_used_colours(colouring))

solver = GeneticSolver(model, crossover_type=CrossoverType.UNIFORM)
best = solver.solve(output_dir=".")
print(best.fitness)
```

`Model.load_lines` accepts the lines of an instance directly.
`Model.solve_simulated_annealing(output_dir)` and
`GeneticSolver.solve(output_dir)` append a summary line to
`csv/results/sa/sa_results_<name>.csv` (or `ga/ga_results_<name>.csv`) and
write semicolon-separated progress to `sa_plot_<name>.csv`
(`ga_plot_<name>.csv`) under `output_dir`. Those directories must already
exist. Progress messages go to the `logging` module.

Travelling thief:

```python
from metaopt.ttp.model import Model
from metaopt.ttp.genetic import GeneticSolver
from metaopt.ttp.instance import format_route

model = Model(seed=1)
model.load_file("berlin52/berlin52_n51_uncorr_05.ttp")
model.create_weight_matrix()

best = model.simulated_annealing(iterations=10_000)
print(format_route(best.route), best.fitness, best.knapsack_value)

best = GeneticSolver(model, generation_limit=100).solve()
```

`metaopt.ttp.instance.parse_instance` parses instance lines without a
file, and `load_instance` reads one from disk.

## What it does not do

- The `metaopt-gcp` command only reports instance parameters; running the
  colouring solvers is done from Python.
- The `metaopt-ttp` command only runs simulated annealing; the genetic
  solver is available from Python only.
- Results are written as CSV files or log messages; nothing is plotted.