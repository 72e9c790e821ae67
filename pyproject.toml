[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "metaopt"
version = "0.1.0"
description = "Metaheuristic solvers for graph colouring and the travelling thief problem"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "metaheuristics",
    "optimisation",
    "graph colouring",
    "travelling thief problem",
    "genetic algorithm",
    "simulated annealing",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
metaopt-gcp = "metaopt.gcp.cli:main"
metaopt-ttp = "metaopt.ttp.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["metaopt"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
