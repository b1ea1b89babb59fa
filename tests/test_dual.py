import logging
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dual import get_dual_problem
from problem import Constraint, ConstraintSign, Problem, ProblemValidationError, Sense
from simplex import SolverMethod, solve


def _primal():
    return Problem(
        sense=Sense.MAXIMIZE,
        variables=["x1", "x2"],
        objective_coefficients=[3, 5],
        constraints=[
            Constraint("c1", [1, 1], "<=", 4),
            Constraint("c2", [2, 3], "<=", 12),
        ],
    )


def test_dual_transposes_primal():
    dual = get_dual_problem(_primal())
    assert dual.sense is Sense.MINIMIZE
    assert dual.variables == ("y1", "y2")
    assert dual.objective_coefficients == (4.0, 12.0)
    assert [c.coefficients for c in dual.constraints] == [(1.0, 2.0), (1.0, 3.0)]
    assert [c.rhs for c in dual.constraints] == [3.0, 5.0]
    assert all(c.sign is ConstraintSign.GREATER_EQ for c in dual.constraints)
    assert dual.non_negative


def test_dual_of_dual_restores_primal_shape():
    primal = _primal()
    twice = get_dual_problem(get_dual_problem(primal))
    assert twice.sense is primal.sense
    assert twice.objective_coefficients == primal.objective_coefficients
    assert [c.rhs for c in twice.constraints] == [c.rhs for c in primal.constraints]
    assert [c.coefficients for c in twice.constraints] == [c.coefficients for c in primal.constraints]
    assert all(c.sign is ConstraintSign.LESS_EQ for c in twice.constraints)


def test_minimization_dual_uses_less_equal_rows():
    primal = Problem(
        sense=Sense.MINIMIZE,
        variables=["x1", "x2"],
        objective_coefficients=[2, 3],
        constraints=[
            Constraint("c1", [1, 1], ">=", 4),
            Constraint("c2", [1, 3], ">=", 6),
        ],
    )
    dual = get_dual_problem(primal)
    assert dual.sense is Sense.MAXIMIZE
    assert all(c.sign is ConstraintSign.LESS_EQ for c in dual.constraints)
    final = solve(dual, SolverMethod.STANDARD_SIMPLEX)[-1]
    assert final.is_optimal
    # Strong duality with the primal optimum of 9.
    assert final.objective_value == pytest.approx(9.0)


@pytest.mark.parametrize("method", [SolverMethod.BIG_M, SolverMethod.TWO_PHASE])
def test_strong_duality(method):
    primal_final = solve(_primal(), SolverMethod.STANDARD_SIMPLEX)[-1]
    dual_final = solve(get_dual_problem(_primal()), method)[-1]
    assert dual_final.is_optimal
    assert dual_final.objective_value == pytest.approx(primal_final.objective_value, abs=1e-6)


def test_dual_rejects_free_variables():
    primal = Problem(
        sense=Sense.MAXIMIZE,
        variables=["x1"],
        objective_coefficients=[1],
        constraints=[Constraint("c1", [1], "<=", 1)],
        non_negative=False,
    )
    with pytest.raises(ProblemValidationError):
        get_dual_problem(primal)


def test_non_canonical_signs_warn(caplog):
    primal = Problem(
        sense=Sense.MAXIMIZE,
        variables=["x1", "x2"],
        objective_coefficients=[1, 1],
        constraints=[
            Constraint("c1", [1, 1], "<=", 4),
            Constraint("c2", [1, 0], ">=", 1),
        ],
    )
    with caplog.at_level(logging.WARNING, logger="dual"):
        dual = get_dual_problem(primal)
    assert "c2" in caplog.text
    assert dual.n_variables == 2
    assert dual.constraints[0].coefficients == (1.0, 1.0)
