"""Configuration loading for the simplex trace runner."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from problem import Problem, ProblemValidationError
from simplex import DEFAULT_BIG_M, DEFAULT_MAX_ITERATIONS, SolverMethod
from steps import ZERO_TOL
from tableau import PIVOT_TOL


@dataclass
class SolverConfig:
    method: SolverMethod = SolverMethod.TWO_PHASE
    big_m: float = DEFAULT_BIG_M
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    pivot_tol: float = PIVOT_TOL
    zero_tol: float = ZERO_TOL


@dataclass
class RunConfig:
    logging: bool = True
    log_level: str = "INFO"
    verify: bool = False
    dual: bool = False


@dataclass
class Config:
    problem: Problem
    solver: SolverConfig = field(default_factory=SolverConfig)
    run: RunConfig = field(default_factory=RunConfig)
    base_path: Path = Path(".")


def _read_mapping(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as handle:
        if path.suffix == ".json":
            return json.load(handle)
        if path.suffix in {".yaml", ".yml"}:
            return yaml.safe_load(handle)
    raise ValueError(f"unsupported problem file type: {path}")


def load_problem(path: str | Path) -> Problem:
    problem_path = Path(path).expanduser().resolve()
    raw = _read_mapping(problem_path)
    if isinstance(raw, dict) and "problem" in raw and "constraints" not in raw:
        raw = raw["problem"]
    return Problem.from_dict(raw)


def _solver_config(raw: dict) -> SolverConfig:
    solver = SolverConfig(
        method=SolverMethod.parse(raw.get("method", SolverMethod.TWO_PHASE)),
        big_m=float(raw.get("big_m", DEFAULT_BIG_M)),
        max_iterations=int(raw.get("max_iterations", DEFAULT_MAX_ITERATIONS)),
        pivot_tol=float(raw.get("pivot_tol", PIVOT_TOL)),
        zero_tol=float(raw.get("zero_tol", ZERO_TOL)),
    )
    if solver.big_m <= 0:
        raise ValueError("solver.big_m must be positive")
    if solver.max_iterations < 0:
        raise ValueError("solver.max_iterations must be non-negative")
    if solver.pivot_tol <= 0 or solver.zero_tol <= 0:
        raise ValueError("solver tolerances must be positive")
    return solver


def load_config(path: str | Path) -> Config:
    cfg_path = Path(path).expanduser().resolve()
    with cfg_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    base = cfg_path.parent

    solver_raw = raw.get("solver") or {}
    run_raw = raw.get("run") or {}

    problem_raw: Optional[Any] = raw.get("problem")
    if problem_raw is not None:
        problem = Problem.from_dict(problem_raw)
    elif raw.get("problem_path"):
        problem = load_problem(base / raw["problem_path"])
    else:
        raise ProblemValidationError("config must define either 'problem' or 'problem_path'")

    run = RunConfig(
        logging=bool(run_raw.get("logging", True)),
        log_level=str(run_raw.get("log_level", "INFO")).upper(),
        verify=bool(run_raw.get("verify", False)),
        dual=bool(run_raw.get("dual", False)),
    )

    return Config(
        problem=problem,
        solver=_solver_config(solver_raw),
        run=run,
        base_path=base,
    )
