"""Immutable per-step snapshots of a simplex run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from tableau import Tableau

ZERO_TOL = 1e-6


class SolverStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    OPTIMAL = "OPTIMAL"
    ALTERNATIVE_SOLUTION = "ALTERNATIVE_SOLUTION"
    UNBOUNDED = "UNBOUNDED"
    INFEASIBLE = "INFEASIBLE"
    ITERATION_LIMIT = "ITERATION_LIMIT"

    @property
    def is_terminal(self) -> bool:
        return self is not SolverStatus.IN_PROGRESS


class ReadOnlyValues(Mapping[str, float]):
    """Name to value mapping that cannot be changed after construction."""

    def __init__(self, values: Mapping[str, float]) -> None:
        self._values: Dict[str, float] = dict(values)

    def __getitem__(self, key: str) -> float:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values!r})"


@dataclass(frozen=True)
class TableauRow:
    basic_var: str
    coefficients: Tuple[float, ...]
    rhs: float
    ratio: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "basic_var": self.basic_var,
            "coefficients": list(self.coefficients),
            "rhs": self.rhs,
            "ratio": self.ratio,
        }


@dataclass(frozen=True)
class StepSnapshot:
    step_index: int
    description: str
    headers: Tuple[str, ...]
    tableau: Tuple[TableauRow, ...]
    z_row: Tuple[float, ...]
    status: SolverStatus
    objective_value: float
    solution: Mapping[str, float]
    phase: str
    phase_objective: float
    entering_var: Optional[str] = None
    leaving_var: Optional[str] = None
    pivot_row: Optional[int] = None
    pivot_col: Optional[int] = None
    equations: Tuple[str, ...] = ()

    @property
    def is_optimal(self) -> bool:
        return self.status in (SolverStatus.OPTIMAL, SolverStatus.ALTERNATIVE_SOLUTION)

    def to_dict(self) -> dict:
        return {
            "step_index": self.step_index,
            "description": self.description,
            "headers": list(self.headers),
            "tableau": [row.to_dict() for row in self.tableau],
            "z_row": list(self.z_row),
            "status": self.status.value,
            "is_optimal": self.is_optimal,
            "objective_value": self.objective_value,
            "solution": dict(self.solution),
            "phase": self.phase,
            "phase_objective": self.phase_objective,
            "entering_var": self.entering_var,
            "leaving_var": self.leaving_var,
            "pivot_row": self.pivot_row,
            "pivot_col": self.pivot_col,
            "equations": list(self.equations),
        }


def _clean(value: float, tol: float) -> float:
    value = float(value)
    if abs(value) < tol:
        return 0.0
    return value


class StepRecorder:
    """Collects detached snapshots of a tableau as the solver advances."""

    def __init__(
        self,
        *,
        objective: np.ndarray,
        sign: float,
        zero_tol: float = ZERO_TOL,
    ) -> None:
        self._objective = np.asarray(objective, dtype=float)
        self._sign = sign
        self._zero_tol = zero_tol
        self._steps: List[StepSnapshot] = []

    @property
    def steps(self) -> List[StepSnapshot]:
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def record(
        self,
        tableau: Tableau,
        *,
        costs: np.ndarray,
        phase: str,
        status: SolverStatus,
        description: str,
        entering: Optional[int] = None,
        leaving: Optional[int] = None,
        ratios: Optional[Sequence[Optional[float]]] = None,
        equations: Sequence[str] = (),
    ) -> StepSnapshot:
        tol = self._zero_tol
        basic = tableau.basic_labels()
        rows = []
        for i in range(tableau.n_rows):
            ratio = None
            if ratios is not None and ratios[i] is not None:
                ratio = _clean(ratios[i], tol)
            rows.append(
                TableauRow(
                    basic_var=basic[i],
                    coefficients=tuple(_clean(v, tol) for v in tableau.matrix[i]),
                    rhs=_clean(tableau.rhs[i], tol),
                    ratio=ratio,
                )
            )

        solution = {name: _clean(value, tol) for name, value in tableau.current_solution().items()}
        decision_values = np.array(list(solution.values()), dtype=float)
        # Internal objective is in maximize sense; undo the negation for MINIMIZE.
        objective_value = self._sign * float(self._objective @ decision_values)

        snapshot = StepSnapshot(
            step_index=len(self._steps) + 1,
            description=description,
            headers=tuple(tableau.labels),
            tableau=tuple(rows),
            z_row=tuple(_clean(v, tol) for v in tableau.reduced_costs(costs)),
            status=status,
            objective_value=_clean(objective_value, tol),
            solution=ReadOnlyValues(solution),
            phase=phase,
            phase_objective=_clean(tableau.objective_value(costs), tol),
            entering_var=tableau.labels[entering] if entering is not None else None,
            leaving_var=tableau.labels[tableau.basis[leaving]] if leaving is not None else None,
            pivot_row=leaving,
            pivot_col=entering,
            equations=tuple(equations),
        )
        self._steps.append(snapshot)
        return snapshot
