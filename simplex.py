"""Tableau simplex solver with Standard, Big-M and Two-Phase strategies.

Every evaluated state is recorded as a :class:`~steps.StepSnapshot` so a run
can be replayed step by step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Union

import numpy as np

from problem import Problem, ProblemValidationError
from standard_form import ColumnKind, StandardForm, format_number, to_standard_form
from steps import ZERO_TOL, SolverStatus, StepRecorder, StepSnapshot
from tableau import PIVOT_TOL, Tableau

if TYPE_CHECKING:
    from config import SolverConfig

logger = logging.getLogger(__name__)

DEFAULT_BIG_M = 10_000.0
DEFAULT_MAX_ITERATIONS = 20


class MethodNotApplicableError(ProblemValidationError):
    """Raised when the chosen method cannot handle the problem's constraints."""


class SolverMethod(str, Enum):
    STANDARD_SIMPLEX = "STANDARD_SIMPLEX"
    BIG_M = "BIG_M"
    TWO_PHASE = "TWO_PHASE"

    @classmethod
    def parse(cls, value: Union[str, SolverMethod]) -> SolverMethod:
        if isinstance(value, SolverMethod):
            return value
        key = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        aliases = {
            "SIMPLEX": cls.STANDARD_SIMPLEX,
            "STANDARD": cls.STANDARD_SIMPLEX,
            "BIGM": cls.BIG_M,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError as exc:
            raise ValueError(f"unsupported solver method: {value}") from exc


class OptimalityRule(str, Enum):
    FINAL = "final"
    NO_BASIC_ARTIFICIALS = "no_basic_artificials"
    ZERO_ARTIFICIAL_SUM = "zero_artificial_sum"


@dataclass(frozen=True)
class Phase:
    """Cost vector and termination rule driving one pass of pivots."""

    name: str
    costs: np.ndarray
    allow_artificial: bool
    rule: OptimalityRule


def _objective_costs(form: StandardForm, artificial_cost: float = 0.0) -> np.ndarray:
    costs = np.zeros(len(form.labels), dtype=float)
    costs[: form.n_decision] = form.objective
    for col in form.artificial_columns:
        costs[col] = artificial_cost
    return costs


def _standard_phases(form: StandardForm, big_m: float) -> List[Phase]:
    if form.requires_artificials:
        artificials = ", ".join(form.labels[j] for j in form.artificial_columns)
        raise MethodNotApplicableError(
            "standard simplex needs an all-slack starting basis; "
            f"artificial variables required ({artificials}). Use BIG_M or TWO_PHASE."
        )
    return [Phase("Simplex", _objective_costs(form), False, OptimalityRule.FINAL)]


def _big_m_phases(form: StandardForm, big_m: float) -> List[Phase]:
    costs = _objective_costs(form, artificial_cost=-big_m)
    return [Phase("Big-M", costs, True, OptimalityRule.NO_BASIC_ARTIFICIALS)]


def _two_phase_phases(form: StandardForm, big_m: float) -> List[Phase]:
    if not form.requires_artificials:
        # A slack basis is already feasible, so Phase 1 has nothing to do.
        return [Phase("Phase 2", _objective_costs(form), False, OptimalityRule.FINAL)]
    phase_two = Phase("Phase 2", _objective_costs(form), False, OptimalityRule.FINAL)
    phase_one_costs = np.zeros(len(form.labels), dtype=float)
    phase_one_costs[form.artificial_columns] = -1.0
    return [
        Phase("Phase 1", phase_one_costs, True, OptimalityRule.ZERO_ARTIFICIAL_SUM),
        phase_two,
    ]


PHASE_BUILDERS: Dict[SolverMethod, Callable[[StandardForm, float], List[Phase]]] = {
    SolverMethod.STANDARD_SIMPLEX: _standard_phases,
    SolverMethod.BIG_M: _big_m_phases,
    SolverMethod.TWO_PHASE: _two_phase_phases,
}


class SimplexSolver:
    def __init__(
        self,
        *,
        tol: float = PIVOT_TOL,
        zero_tol: float = ZERO_TOL,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        big_m: float = DEFAULT_BIG_M,
    ) -> None:
        if max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")
        if big_m <= 0:
            raise ValueError("big_m must be positive")
        self._tol = tol
        self._zero_tol = zero_tol
        self._max_iterations = max_iterations
        self._big_m = big_m

    @classmethod
    def from_config(cls, config: SolverConfig) -> SimplexSolver:
        return cls(
            tol=config.pivot_tol,
            zero_tol=config.zero_tol,
            max_iterations=config.max_iterations,
            big_m=config.big_m,
        )

    def solve(self, problem: Problem, method: Union[str, SolverMethod]) -> List[StepSnapshot]:
        method = SolverMethod.parse(method)
        problem.validate()
        if not problem.non_negative:
            raise ProblemValidationError("free (unrestricted) variables are not supported")

        form = to_standard_form(problem)
        phases = PHASE_BUILDERS[method](form, self._big_m)
        logger.debug(
            "solving %d x %d tableau with %s (%s)",
            form.matrix.shape[0],
            len(form.labels),
            method.value,
            ", ".join(phase.name for phase in phases),
        )

        tableau = Tableau(form, tol=self._tol)
        recorder = StepRecorder(objective=form.objective, sign=form.sign, zero_tol=self._zero_tol)
        run = _Run(
            tableau,
            recorder,
            tol=self._tol,
            zero_tol=self._zero_tol,
            max_iterations=self._max_iterations,
        )
        recorder.record(
            tableau,
            costs=phases[0].costs,
            phase=phases[0].name,
            status=SolverStatus.IN_PROGRESS,
            description=_initial_description(method, form),
            equations=form.equations,
        )

        for idx, phase in enumerate(phases):
            is_last = idx == len(phases) - 1
            status = run.iterate(phase, final=is_last)
            if status is not None:
                break
            next_phase = phases[idx + 1]
            recorder.record(
                tableau,
                costs=next_phase.costs,
                phase=next_phase.name,
                status=SolverStatus.IN_PROGRESS,
                description=(
                    "Phase 1 complete: artificial variables are zero. "
                    "Starting Phase 2 with the original objective."
                ),
            )
            run.retire_artificials(next_phase)
            if run.finished:
                break

        steps = recorder.steps
        final = steps[-1]
        logger.info(
            "%s finished with %s after %d pivots (objective=%s)",
            method.value,
            final.status.value,
            run.iterations,
            format_number(final.objective_value),
        )
        return steps


class _Run:
    """Pivot loop state for one ``solve`` call."""

    def __init__(
        self,
        tableau: Tableau,
        recorder: StepRecorder,
        *,
        tol: float,
        zero_tol: float,
        max_iterations: int,
    ) -> None:
        self._tol = tol
        self._zero_tol = zero_tol
        self._max_iterations = max_iterations
        self.tableau = tableau
        self.recorder = recorder
        self.iterations = 0
        self.finished = False

    def _finish(self, phase: Phase, status: SolverStatus, description: str, **extra) -> SolverStatus:
        self.recorder.record(
            self.tableau,
            costs=phase.costs,
            phase=phase.name,
            status=status,
            description=description,
            **extra,
        )
        self.finished = True
        return status

    def iterate(self, phase: Phase, *, final: bool) -> Optional[SolverStatus]:
        """Pivot until ``phase`` is optimal.

        Returns the terminal status, or ``None`` when the phase ended
        optimally and the next phase should take over.
        """
        tableau = self.tableau
        while True:
            reduced = tableau.reduced_costs(phase.costs)
            entering = tableau.choose_entering_column(reduced, allow_artificial=phase.allow_artificial)
            if entering is None:
                return self._on_optimal(phase, reduced, final=final)

            ratios = tableau.ratios(entering)
            leaving = tableau.choose_leaving_row(entering, ratios)
            entering_label = tableau.labels[entering]
            if leaving is None:
                if phase.rule is OptimalityRule.NO_BASIC_ARTIFICIALS:
                    stuck = self._positive_artificials()
                    if stuck:
                        return self._finish(
                            phase,
                            SolverStatus.INFEASIBLE,
                            f"Problem is infeasible: no row limits {entering_label} while artificial variable(s) "
                            f"{', '.join(stuck)} are still positive.",
                            entering=entering,
                            ratios=ratios,
                        )
                return self._finish(
                    phase,
                    SolverStatus.UNBOUNDED,
                    f"Problem is unbounded: {entering_label} can enter but no row limits it "
                    "(no positive entry in its column).",
                    entering=entering,
                    ratios=ratios,
                )

            leaving_label = tableau.labels[tableau.basis[leaving]]
            if self.iterations >= self._max_iterations:
                return self._finish(
                    phase,
                    SolverStatus.ITERATION_LIMIT,
                    f"Iteration limit of {self._max_iterations} pivots reached while "
                    f"{entering_label} was to enter and {leaving_label} to leave.",
                    entering=entering,
                    leaving=leaving,
                    ratios=ratios,
                )

            self.iterations += 1
            self.recorder.record(
                tableau,
                costs=phase.costs,
                phase=phase.name,
                status=SolverStatus.IN_PROGRESS,
                description=(
                    f"Iteration {self.iterations}: {entering_label} enters, {leaving_label} leaves. "
                    f"Pivot at row {leaving + 1}, column {entering + 1}."
                ),
                entering=entering,
                leaving=leaving,
                ratios=ratios,
            )
            logger.debug(
                "%s pivot %d: %s enters, %s leaves (ratio=%s)",
                phase.name,
                self.iterations,
                entering_label,
                leaving_label,
                ratios[leaving],
            )
            tableau.pivot(leaving, entering)

    def _positive_artificials(self) -> List[str]:
        tableau = self.tableau
        return [
            tableau.labels[col]
            for row, col in enumerate(tableau.basis)
            if tableau.is_artificial(col) and tableau.rhs[row] > self._zero_tol
        ]

    def _on_optimal(self, phase: Phase, reduced: np.ndarray, *, final: bool) -> Optional[SolverStatus]:
        tableau = self.tableau
        zero_tol = self._zero_tol

        if phase.rule is OptimalityRule.ZERO_ARTIFICIAL_SUM:
            artificial_sum = -tableau.objective_value(phase.costs)
            if artificial_sum > zero_tol:
                return self._finish(
                    phase,
                    SolverStatus.INFEASIBLE,
                    "Problem is infeasible: Phase 1 ended with artificial variables summing to "
                    f"{format_number(artificial_sum)} > 0.",
                )
            if not final:
                return None

        if phase.rule is OptimalityRule.NO_BASIC_ARTIFICIALS:
            stuck = self._positive_artificials()
            if stuck:
                return self._finish(
                    phase,
                    SolverStatus.INFEASIBLE,
                    "Problem is infeasible: artificial variable(s) "
                    f"{', '.join(stuck)} remain positive in the optimal basis.",
                )

        alternatives = tableau.nonbasic_zero_columns(reduced)
        if alternatives:
            names = ", ".join(tableau.labels[j] for j in alternatives)
            return self._finish(
                phase,
                SolverStatus.ALTERNATIVE_SOLUTION,
                "Optimal solution found, but it is not unique: non-basic "
                f"{names} has a zero reduced cost, so alternative optima exist.",
            )
        return self._finish(
            phase,
            SolverStatus.OPTIMAL,
            "Optimality condition satisfied. All reduced costs are non-negative.",
        )

    def retire_artificials(self, next_phase: Phase) -> None:
        """Pivot zero-level artificials out of the basis before ``next_phase``."""
        tableau = self.tableau
        tol = self._tol
        for row in range(tableau.n_rows):
            col = tableau.basis[row]
            if not tableau.is_artificial(col):
                continue
            candidates = [
                j
                for j in range(tableau.n_columns)
                if not tableau.is_artificial(j) and abs(tableau.matrix[row, j]) > tol
            ]
            if not candidates:
                logger.debug("row %d is redundant; %s stays basic at zero", row + 1, tableau.labels[col])
                continue
            entering = candidates[0]
            if self.iterations >= self._max_iterations:
                self._finish(
                    next_phase,
                    SolverStatus.ITERATION_LIMIT,
                    f"Iteration limit of {self._max_iterations} pivots reached while "
                    f"driving {tableau.labels[col]} out of the basis.",
                    entering=entering,
                    leaving=row,
                )
                return
            self.iterations += 1
            self.recorder.record(
                tableau,
                costs=next_phase.costs,
                phase=next_phase.name,
                status=SolverStatus.IN_PROGRESS,
                description=(
                    f"Iteration {self.iterations}: {tableau.labels[entering]} enters, "
                    f"{tableau.labels[col]} leaves. Driving a zero-level artificial variable "
                    "out of the basis (degenerate pivot on a non-zero entry, no ratio test)."
                ),
                entering=entering,
                leaving=row,
            )
            tableau.pivot(row, entering)


def _initial_description(method: SolverMethod, form: StandardForm) -> str:
    added = []
    for kind, noun in (
        (ColumnKind.SLACK, "slack"),
        (ColumnKind.SURPLUS, "surplus"),
        (ColumnKind.ARTIFICIAL, "artificial"),
    ):
        names = [label for label, k in zip(form.labels, form.kinds) if k is kind]
        if names:
            added.append(f"{noun} {', '.join(names)}")
    suffix = f" Added {'; '.join(added)}." if added else ""
    if method is SolverMethod.BIG_M and form.requires_artificials:
        suffix += " Artificial variables carry a -M penalty in the objective."
    if method is SolverMethod.TWO_PHASE and form.requires_artificials:
        suffix += " Phase 1 minimizes the sum of artificial variables."
    return f"Initial tableau in standard form ({method.value}).{suffix}"


def solve(
    problem: Problem,
    method: Union[str, SolverMethod] = SolverMethod.TWO_PHASE,
    config: Optional[SolverConfig] = None,
) -> List[StepSnapshot]:
    """Solve ``problem`` and return the recorded trace of tableaus."""
    solver = SimplexSolver.from_config(config) if config is not None else SimplexSolver()
    return solver.solve(problem, method)
