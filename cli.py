"""Command-line interface for tracing simplex runs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from config import Config, RunConfig, SolverConfig, load_config, load_problem
from dual import get_dual_problem
from problem import ProblemValidationError, Sense
from simplex import SolverMethod, solve
from solver.lp_solver import LPSolverError, solve_reference
from standard_form import format_linear, format_number
from steps import StepSnapshot
from telemetry.writer import write_history

logger = logging.getLogger(__name__)

_METHOD_CHOICES = {
    "standard": SolverMethod.STANDARD_SIMPLEX,
    "big_m": SolverMethod.BIG_M,
    "two_phase": SolverMethod.TWO_PHASE,
}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Solve an LP and record every simplex tableau")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--config",
        help="Path to YAML configuration file.",
    )
    source.add_argument(
        "--problem",
        help="Path to a JSON or YAML problem file.",
    )
    parser.add_argument(
        "--method",
        choices=sorted(_METHOD_CHOICES),
        help="Override the solving method.",
    )
    parser.add_argument(
        "--out",
        help="Output directory for trace.jsonl (and dual.json with --dual).",
    )
    parser.add_argument(
        "--dual",
        action="store_true",
        help="Also derive the dual problem.",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Cross-check the final step against SciPy's HiGHS solver.",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        cfg = _load(args)
    except (ProblemValidationError, ValueError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    _configure_logging(cfg.run)

    try:
        steps = solve(cfg.problem, cfg.solver.method, cfg.solver)
    except ProblemValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    for line in _summary(steps):
        print(line)

    out_dir = Path(args.out) if args.out else None
    if out_dir is not None:
        write_history(out_dir / "trace.jsonl", (step.to_dict() for step in steps))
        logger.info("wrote %d steps to %s", len(steps), out_dir / "trace.jsonl")

    if cfg.run.dual:
        dual = get_dual_problem(cfg.problem)
        print("Dual problem:")
        verb = "Maximize" if dual.sense is Sense.MAXIMIZE else "Minimize"
        print(f"  {verb} W = {format_linear(dual.objective_coefficients, dual.variables)}")
        for constraint in dual.constraints:
            lhs = format_linear(constraint.coefficients, dual.variables)
            print(f"  {lhs} {constraint.sign.value} {format_number(constraint.rhs)}")
        if out_dir is not None:
            out_dir.mkdir(parents=True, exist_ok=True)
            (out_dir / "dual.json").write_text(json.dumps(dual.to_dict(), indent=2))

    if cfg.run.verify:
        return _verify(cfg, steps[-1])
    return 0


def _load(args: argparse.Namespace) -> Config:
    if args.config:
        cfg = load_config(args.config)
    else:
        cfg = Config(problem=load_problem(args.problem), solver=SolverConfig(), run=RunConfig())
    if args.method:
        cfg.solver.method = _METHOD_CHOICES[args.method]
    if args.dual:
        cfg.run.dual = True
    if args.verify:
        cfg.run.verify = True
    if args.log_level:
        cfg.run.log_level = args.log_level.upper()
    return cfg


def _configure_logging(run: RunConfig) -> None:
    if not run.logging:
        logging.disable(logging.CRITICAL)
        return
    level = getattr(logging, run.log_level, None)
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {run.log_level}")
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")


def _summary(steps: List[StepSnapshot]) -> List[str]:
    final = steps[-1]
    lines = [f"Status: {final.status.value} ({len(steps)} steps)", final.description]
    if final.is_optimal:
        lines.append(f"Objective: {format_number(final.objective_value)}")
        values = ", ".join(f"{name}={format_number(value)}" for name, value in final.solution.items())
        lines.append(f"Solution: {values}")
    return lines


def _verify(cfg: Config, final: StepSnapshot) -> int:
    try:
        reference = solve_reference(cfg.problem)
    except LPSolverError as exc:
        logger.error("reference solver failed: %s", exc)
        return 1

    expected = {"optimal": ("OPTIMAL", "ALTERNATIVE_SOLUTION")}.get(
        reference.status, (reference.status.upper(),)
    )
    if final.status.value not in expected:
        print(f"Verification FAILED: reference status {reference.status}, trace {final.status.value}")
        return 1
    if reference.objective is not None and abs(reference.objective - final.objective_value) > 1e-4:
        print(
            "Verification FAILED: reference objective "
            f"{format_number(reference.objective)}, trace {format_number(final.objective_value)}"
        )
        return 1
    print(f"Verification passed ({reference.status}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
