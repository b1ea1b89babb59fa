"""Independent reference solvers used to cross-check tableau traces."""

from .lp_solver import LPSolution, LPSolverError, solve_reference

__all__ = ["LPSolution", "LPSolverError", "solve_reference"]
