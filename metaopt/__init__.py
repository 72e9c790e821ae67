"""Metaheuristic solvers for graph colouring and the travelling thief problem."""

__version__ = "0.1.0"