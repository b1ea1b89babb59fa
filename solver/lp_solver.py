"""Reference linear program solver built on SciPy, used to cross-check traces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from scipy.optimize import linprog

from problem import ConstraintSign, Problem, Sense

_STATUS = {0: "optimal", 2: "infeasible", 3: "unbounded"}


@dataclass
class LPSolution:
    x: Optional[np.ndarray]
    status: str
    objective: Optional[float]


class LPSolverError(RuntimeError):
    pass


def _split_constraints(
    problem: Problem,
) -> Tuple[Optional[np.ndarray], Optional[np.ndarray], Optional[np.ndarray], Optional[np.ndarray]]:
    ub_rows: List[List[float]] = []
    ub_rhs: List[float] = []
    eq_rows: List[List[float]] = []
    eq_rhs: List[float] = []
    for constraint in problem.constraints:
        row = list(constraint.coefficients)
        if constraint.sign is ConstraintSign.LESS_EQ:
            ub_rows.append(row)
            ub_rhs.append(constraint.rhs)
        elif constraint.sign is ConstraintSign.GREATER_EQ:
            ub_rows.append([-v for v in row])
            ub_rhs.append(-constraint.rhs)
        else:
            eq_rows.append(row)
            eq_rhs.append(constraint.rhs)
    A_ub = np.array(ub_rows, dtype=float) if ub_rows else None
    b_ub = np.array(ub_rhs, dtype=float) if ub_rows else None
    A_eq = np.array(eq_rows, dtype=float) if eq_rows else None
    b_eq = np.array(eq_rhs, dtype=float) if eq_rows else None
    return A_ub, b_ub, A_eq, b_eq


def solve_reference(problem: Problem) -> LPSolution:
    """Solve ``problem`` with HiGHS; the objective is in the problem's own sense."""
    problem.validate()
    c = np.asarray(problem.objective_coefficients, dtype=float)
    n = c.size
    A_ub, b_ub, A_eq, b_eq = _split_constraints(problem)
    bounds = [(0, None) if problem.non_negative else (None, None)] * n

    # linprog minimizes, so a maximization objective is negated.
    objective = -c if problem.sense is Sense.MAXIMIZE else c
    res = linprog(
        objective,
        A_ub=A_ub,
        b_ub=b_ub,
        A_eq=A_eq,
        b_eq=b_eq,
        bounds=bounds,
        method="highs",
    )
    status = _STATUS.get(res.status)
    if status is None:
        raise LPSolverError(res.message)
    if status != "optimal":
        return LPSolution(None, status, None)
    x = np.asarray(res.x, dtype=float)
    return LPSolution(x, status, float(c @ x))
