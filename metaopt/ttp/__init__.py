"""Travelling thief problem: instances, heuristics, annealing and a genetic solver."""