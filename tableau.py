"""Mutable tableau state and pivot selection rules."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from standard_form import ColumnKind, StandardForm

PIVOT_TOL = 1e-9


class Tableau:
    """Constraint rows, right-hand sides and basis of the current iterate.

    Columns are addressed by integer index; ``labels`` and ``kinds`` are
    parallel arrays. The basis columns always form an identity sub-matrix,
    which only :meth:`pivot` is allowed to maintain.
    """

    def __init__(self, form: StandardForm, *, tol: float = PIVOT_TOL) -> None:
        self.labels: List[str] = list(form.labels)
        self.kinds: List[ColumnKind] = list(form.kinds)
        self.matrix = np.array(form.matrix, dtype=float, copy=True)
        self.rhs = np.array(form.rhs, dtype=float, copy=True)
        self.basis: List[int] = list(form.basis)
        self.n_decision = form.n_decision
        self._tol = tol

    @property
    def n_rows(self) -> int:
        return int(self.matrix.shape[0])

    @property
    def n_columns(self) -> int:
        return len(self.labels)

    def is_artificial(self, col: int) -> bool:
        return self.kinds[col] is ColumnKind.ARTIFICIAL

    def basic_labels(self) -> List[str]:
        return [self.labels[col] for col in self.basis]

    def reduced_costs(self, costs: np.ndarray) -> np.ndarray:
        """Return ``z_j - c_j`` for every column under ``costs``."""
        costs = np.asarray(costs, dtype=float)
        basic_costs = costs[self.basis] if self.basis else np.zeros(0)
        return basic_costs @ self.matrix - costs

    def objective_value(self, costs: np.ndarray) -> float:
        costs = np.asarray(costs, dtype=float)
        if not self.basis:
            return 0.0
        return float(costs[self.basis] @ self.rhs)

    def column_values(self) -> np.ndarray:
        """Value of every column at the current basic solution."""
        values = np.zeros(self.n_columns, dtype=float)
        for row, col in enumerate(self.basis):
            values[col] = self.rhs[row]
        return values

    def current_solution(self) -> Dict[str, float]:
        values = self.column_values()
        return {self.labels[j]: float(values[j]) for j in range(self.n_decision)}

    def ratios(self, col: int) -> List[Optional[float]]:
        column = self.matrix[:, col]
        result: List[Optional[float]] = []
        for row, coeff in enumerate(column):
            if coeff > self._tol:
                result.append(float(self.rhs[row] / coeff))
            else:
                result.append(None)
        return result

    def pivot(self, row: int, col: int) -> None:
        pivot_value = self.matrix[row, col]
        if abs(pivot_value) <= self._tol:
            raise ValueError(f"pivot element at ({row}, {col}) is zero")
        self.matrix[row, :] /= pivot_value
        self.rhs[row] /= pivot_value
        for other in range(self.n_rows):
            if other == row:
                continue
            factor = self.matrix[other, col]
            if factor == 0.0:
                continue
            self.matrix[other, :] -= factor * self.matrix[row, :]
            self.rhs[other] -= factor * self.rhs[row]
        # Pin the entering column to an exact unit vector.
        self.matrix[:, col] = 0.0
        self.matrix[row, col] = 1.0
        self.basis[row] = col

    def choose_entering_column(
        self,
        reduced: np.ndarray,
        *,
        allow_artificial: bool = True,
    ) -> Optional[int]:
        """Most negative reduced cost below ``-tol``; ties go to the lowest index."""
        eligible = [
            j
            for j in range(self.n_columns)
            if allow_artificial or not self.is_artificial(j)
        ]
        if not eligible:
            return None
        best = min(float(reduced[j]) for j in eligible)
        if best >= -self._tol:
            return None
        for j in eligible:
            if reduced[j] <= best + self._tol:
                return j
        return None

    def choose_leaving_row(self, col: int, ratios: Sequence[Optional[float]] | None = None) -> Optional[int]:
        """Minimum ratio row; ties go to the lowest row index."""
        if ratios is None:
            ratios = self.ratios(col)
        candidates = [(ratio, row) for row, ratio in enumerate(ratios) if ratio is not None]
        if not candidates:
            return None
        best = min(ratio for ratio, _ in candidates)
        for ratio, row in candidates:
            if ratio <= best + self._tol:
                return row
        return None

    def nonbasic_zero_columns(self, reduced: np.ndarray) -> List[int]:
        """Non-basic, non-artificial columns whose reduced cost is zero.

        A zero reduced cost is taken as evidence of alternative optima even
        when the optimum is degenerate; a single feasible point reached
        through a zero-level pivot is reported the same way.
        """
        basic = set(self.basis)
        return [
            j
            for j in range(self.n_columns)
            if j not in basic
            and not self.is_artificial(j)
            and abs(float(reduced[j])) <= self._tol
        ]
