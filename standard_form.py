"""Rewrite an arbitrary LP into the maximization form used by the tableau."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

import numpy as np

from problem import Constraint, ConstraintSign, Problem, Sense


class ColumnKind(str, Enum):
    DECISION = "decision"
    SLACK = "slack"
    SURPLUS = "surplus"
    ARTIFICIAL = "artificial"


@dataclass(frozen=True)
class StandardForm:
    """Internal maximization problem with non-negative right-hand sides.

    ``objective`` holds the decision-variable costs in maximize sense;
    ``sign`` is ``-1`` for minimization problems so reported objective
    values can be turned back into the caller's sense.
    """

    sense: Sense
    labels: Tuple[str, ...]
    kinds: Tuple[ColumnKind, ...]
    matrix: np.ndarray
    rhs: np.ndarray
    basis: Tuple[int, ...]
    objective: np.ndarray
    constraints: Tuple[Constraint, ...]
    equations: Tuple[str, ...]

    @property
    def sign(self) -> float:
        return -1.0 if self.sense is Sense.MINIMIZE else 1.0

    @property
    def n_decision(self) -> int:
        return int(self.objective.size)

    @property
    def artificial_columns(self) -> List[int]:
        return [j for j, kind in enumerate(self.kinds) if kind is ColumnKind.ARTIFICIAL]

    @property
    def requires_artificials(self) -> bool:
        return any(kind is ColumnKind.ARTIFICIAL for kind in self.kinds)


def to_standard_form(problem: Problem) -> StandardForm:
    n = problem.n_variables
    m = problem.n_constraints

    # Negative right-hand sides are flipped before any column is created.
    constraints = tuple(c.flipped() if c.rhs < 0 else c for c in problem.constraints)

    labels: List[str] = list(problem.variables)
    kinds: List[ColumnKind] = [ColumnKind.DECISION] * n
    extra: List[np.ndarray] = []
    basis: List[int] = []
    slack_count = 0
    artificial_count = 0

    def add_column(label: str, kind: ColumnKind, row: int, value: float) -> int:
        column = np.zeros(m, dtype=float)
        column[row] = value
        extra.append(column)
        labels.append(label)
        kinds.append(kind)
        return len(labels) - 1

    for row, constraint in enumerate(constraints):
        if constraint.sign is ConstraintSign.LESS_EQ:
            slack_count += 1
            basis.append(add_column(f"s{slack_count}", ColumnKind.SLACK, row, 1.0))
        elif constraint.sign is ConstraintSign.GREATER_EQ:
            slack_count += 1
            artificial_count += 1
            add_column(f"s{slack_count}", ColumnKind.SURPLUS, row, -1.0)
            basis.append(add_column(f"a{artificial_count}", ColumnKind.ARTIFICIAL, row, 1.0))
        else:
            artificial_count += 1
            basis.append(add_column(f"a{artificial_count}", ColumnKind.ARTIFICIAL, row, 1.0))

    A = np.array([c.coefficients for c in constraints], dtype=float).reshape(m, n)
    matrix = np.hstack([A] + [col.reshape(m, 1) for col in extra]) if extra else A
    rhs = np.array([c.rhs for c in constraints], dtype=float)

    c = np.asarray(problem.objective_coefficients, dtype=float)
    objective = -c if problem.sense is Sense.MINIMIZE else c.copy()

    equations = _format_equations(problem, labels, kinds, matrix, rhs)

    return StandardForm(
        sense=problem.sense,
        labels=tuple(labels),
        kinds=tuple(kinds),
        matrix=matrix,
        rhs=rhs,
        basis=tuple(basis),
        objective=objective,
        constraints=constraints,
        equations=equations,
    )


def _format_equations(
    problem: Problem,
    labels: List[str],
    kinds: List[ColumnKind],
    matrix: np.ndarray,
    rhs: np.ndarray,
) -> Tuple[str, ...]:
    verb = "Maximize" if problem.sense is Sense.MAXIMIZE else "Minimize"
    objective = format_linear(problem.objective_coefficients, problem.variables)
    lines = [f"{verb} Z = {objective}", "Subject to:"]
    for row in range(matrix.shape[0]):
        lines.append(f"  {format_linear(matrix[row], labels)} = {format_number(rhs[row])}")
    lines.append(f"  {', '.join(labels)} >= 0")
    if any(kind is ColumnKind.ARTIFICIAL for kind in kinds):
        artificials = [label for label, kind in zip(labels, kinds) if kind is ColumnKind.ARTIFICIAL]
        lines.append(f"  artificial: {', '.join(artificials)}")
    return tuple(lines)


def format_number(value: float) -> str:
    value = float(value)
    if abs(value - round(value)) < 1e-9:
        return str(int(round(value)))
    return f"{value:.4g}"


def format_linear(coefficients, names) -> str:
    """Render ``3x1 - x2 + s1`` style text, skipping zero terms."""
    parts: List[str] = []
    for coeff, name in zip(coefficients, names):
        coeff = float(coeff)
        if abs(coeff) < 1e-12:
            continue
        magnitude = abs(coeff)
        body = name if abs(magnitude - 1.0) < 1e-12 else f"{format_number(magnitude)}{name}"
        if not parts:
            parts.append(f"-{body}" if coeff < 0 else body)
        else:
            parts.append(f"- {body}" if coeff < 0 else f"+ {body}")
    return " ".join(parts) if parts else "0"
