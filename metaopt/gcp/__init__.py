"""Graph colouring: graphs, DIMACS instances, heuristic, annealing and genetic solvers."""