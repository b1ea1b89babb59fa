"""Construction of the canonical dual of a linear program."""

from __future__ import annotations

import logging

import numpy as np

from problem import Constraint, ConstraintSign, Problem, ProblemValidationError, Sense

logger = logging.getLogger(__name__)

_CANONICAL_PRIMAL_SIGN = {
    Sense.MAXIMIZE: ConstraintSign.LESS_EQ,
    Sense.MINIMIZE: ConstraintSign.GREATER_EQ,
}


def get_dual_problem(problem: Problem, *, prefix: str = "y") -> Problem:
    """Transpose ``problem`` into its dual.

    One dual variable per primal constraint, one dual constraint per primal
    variable. A maximization primal gives a minimization dual with ``>=``
    rows and vice versa. Primal and dual variables are non-negative.
    """
    problem.validate()
    if not problem.non_negative:
        raise ProblemValidationError("dual construction requires non-negative primal variables")

    canonical = _CANONICAL_PRIMAL_SIGN[problem.sense]
    off_form = [c.id for c in problem.constraints if c.sign is not canonical]
    if off_form:
        logger.warning(
            "constraints %s are not in canonical %s form for a %s primal; "
            "the transposed dual may not be equivalent",
            ", ".join(off_form),
            canonical.value,
            problem.sense.value,
        )

    n = problem.n_variables
    A = np.array([c.coefficients for c in problem.constraints], dtype=float).reshape(-1, n)
    b = [c.rhs for c in problem.constraints]
    dual_sign = ConstraintSign.GREATER_EQ if problem.sense is Sense.MAXIMIZE else ConstraintSign.LESS_EQ

    variables = [f"{prefix}{i + 1}" for i in range(problem.n_constraints)]
    constraints = [
        Constraint(
            id=f"dual-{name}",
            coefficients=A[:, j].tolist(),
            sign=dual_sign,
            rhs=problem.objective_coefficients[j],
        )
        for j, name in enumerate(problem.variables)
    ]
    return Problem(
        sense=problem.sense.flipped,
        variables=variables,
        objective_coefficients=b,
        constraints=constraints,
        non_negative=True,
    )
