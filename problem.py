"""Linear program description consumed by the tableau engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence, Tuple


class ProblemValidationError(ValueError):
    """Raised when a problem is malformed or cannot be handled by a method."""


class Sense(str, Enum):
    MAXIMIZE = "MAXIMIZE"
    MINIMIZE = "MINIMIZE"

    @property
    def flipped(self) -> Sense:
        return Sense.MINIMIZE if self is Sense.MAXIMIZE else Sense.MAXIMIZE


class ConstraintSign(str, Enum):
    LESS_EQ = "<="
    GREATER_EQ = ">="
    EQ = "="

    @property
    def flipped(self) -> ConstraintSign:
        if self is ConstraintSign.LESS_EQ:
            return ConstraintSign.GREATER_EQ
        if self is ConstraintSign.GREATER_EQ:
            return ConstraintSign.LESS_EQ
        return self


_SIGN_ALIASES = {
    "<=": ConstraintSign.LESS_EQ,
    "≤": ConstraintSign.LESS_EQ,
    "LESS_EQ": ConstraintSign.LESS_EQ,
    ">=": ConstraintSign.GREATER_EQ,
    "≥": ConstraintSign.GREATER_EQ,
    "GREATER_EQ": ConstraintSign.GREATER_EQ,
    "=": ConstraintSign.EQ,
    "==": ConstraintSign.EQ,
    "EQ": ConstraintSign.EQ,
}

_SENSE_ALIASES = {
    "MAXIMIZE": Sense.MAXIMIZE,
    "MAX": Sense.MAXIMIZE,
    "MINIMIZE": Sense.MINIMIZE,
    "MIN": Sense.MINIMIZE,
}


def parse_sign(value: Any) -> ConstraintSign:
    if isinstance(value, ConstraintSign):
        return value
    key = str(value).strip()
    sign = _SIGN_ALIASES.get(key) or _SIGN_ALIASES.get(key.upper())
    if sign is None:
        raise ProblemValidationError(f"unknown constraint sign: {value!r}")
    return sign


def parse_sense(value: Any) -> Sense:
    if isinstance(value, Sense):
        return value
    sense = _SENSE_ALIASES.get(str(value).strip().upper())
    if sense is None:
        raise ProblemValidationError(f"unknown optimization sense: {value!r}")
    return sense


@dataclass(frozen=True)
class Constraint:
    id: str
    coefficients: Tuple[float, ...]
    sign: ConstraintSign
    rhs: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "coefficients", tuple(float(v) for v in self.coefficients))
        object.__setattr__(self, "sign", parse_sign(self.sign))
        object.__setattr__(self, "rhs", float(self.rhs))

    def flipped(self) -> Constraint:
        """Equivalent constraint with negated coefficients, rhs and sign."""
        return Constraint(
            id=self.id,
            coefficients=tuple(-v for v in self.coefficients),
            sign=self.sign.flipped,
            rhs=-self.rhs,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "coefficients": list(self.coefficients),
            "sign": self.sign.value,
            "rhs": self.rhs,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], index: int = 0) -> Constraint:
        try:
            coefficients = payload["coefficients"]
            sign = payload["sign"]
            rhs = payload["rhs"]
        except KeyError as exc:
            raise ProblemValidationError(f"constraint {index + 1} is missing {exc.args[0]!r}") from exc
        return cls(
            id=payload.get("id", f"c{index + 1}"),
            coefficients=coefficients,
            sign=sign,
            rhs=rhs,
        )


@dataclass(frozen=True)
class Problem:
    """Optimize ``objective_coefficients @ x`` subject to ``constraints``.

    Sequences are stored as tuples so a problem never aliases the lists it
    was built from.
    """

    sense: Sense
    variables: Tuple[str, ...]
    objective_coefficients: Tuple[float, ...]
    constraints: Tuple[Constraint, ...] = field(default_factory=tuple)
    non_negative: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "sense", parse_sense(self.sense))
        object.__setattr__(self, "variables", tuple(str(v) for v in self.variables))
        object.__setattr__(
            self,
            "objective_coefficients",
            tuple(float(v) for v in self.objective_coefficients),
        )
        constraints = []
        for idx, item in enumerate(self.constraints):
            if isinstance(item, Mapping):
                item = Constraint.from_dict(item, idx)
            constraints.append(item)
        object.__setattr__(self, "constraints", tuple(constraints))
        object.__setattr__(self, "non_negative", bool(self.non_negative))

    @property
    def n_variables(self) -> int:
        return len(self.variables)

    @property
    def n_constraints(self) -> int:
        return len(self.constraints)

    def validate(self) -> None:
        n = len(self.variables)
        if n == 0:
            raise ProblemValidationError("problem must declare at least one variable")
        if any(not name.strip() for name in self.variables):
            raise ProblemValidationError("variable names must be non-empty")
        if len(set(self.variables)) != n:
            raise ProblemValidationError("variable names must be unique")
        if len(self.objective_coefficients) != n:
            raise ProblemValidationError(
                f"objective has {len(self.objective_coefficients)} coefficients, expected {n}"
            )
        for constraint in self.constraints:
            if len(constraint.coefficients) != n:
                raise ProblemValidationError(
                    f"constraint {constraint.id} has {len(constraint.coefficients)} "
                    f"coefficients, expected {n}"
                )

    def to_dict(self) -> dict:
        return {
            "sense": self.sense.value,
            "variables": list(self.variables),
            "objective_coefficients": list(self.objective_coefficients),
            "constraints": [constraint.to_dict() for constraint in self.constraints],
            "non_negative": self.non_negative,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Problem:
        if not isinstance(payload, Mapping):
            raise ProblemValidationError("problem definition must be a mapping")
        sense = payload.get("sense", payload.get("type", Sense.MAXIMIZE))
        objective = payload.get("objective_coefficients", payload.get("objectiveCoefficients"))
        if objective is None:
            raise ProblemValidationError("problem is missing objective_coefficients")
        variables: Sequence[str] | None = payload.get("variables")
        if variables is None:
            variables = [f"x{j + 1}" for j in range(len(objective))]
        constraints = [
            Constraint.from_dict(item, idx)
            for idx, item in enumerate(payload.get("constraints") or [])
        ]
        non_negative = payload.get("non_negative", payload.get("nonNegative", True))
        problem = cls(
            sense=sense,
            variables=variables,
            objective_coefficients=objective,
            constraints=constraints,
            non_negative=non_negative,
        )
        problem.validate()
        return problem
