import json
from pathlib import Path
import sys

import pytest
import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import cli
from config import load_config, load_problem
from problem import ProblemValidationError
from simplex import SolverMethod, solve
from telemetry.writer import read_history, write_history

PROBLEM = {
    "sense": "MINIMIZE",
    "variables": ["x1", "x2"],
    "objective_coefficients": [2, 3],
    "constraints": [
        {"id": "c1", "coefficients": [1, 1], "sign": ">=", "rhs": 4},
        {"id": "c2", "coefficients": [1, 3], "sign": ">=", "rhs": 6},
    ],
}


def _write_yaml(path: Path, payload) -> Path:
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


def test_load_config_with_inline_problem(tmp_path):
    cfg_path = _write_yaml(
        tmp_path / "run.yaml",
        {
            "problem": PROBLEM,
            "solver": {"method": "big_m", "big_m": 500, "max_iterations": 7},
            "run": {"log_level": "debug", "verify": True},
        },
    )
    cfg = load_config(cfg_path)
    assert cfg.solver.method is SolverMethod.BIG_M
    assert cfg.solver.big_m == 500.0
    assert cfg.solver.max_iterations == 7
    assert cfg.run.log_level == "DEBUG"
    assert cfg.run.verify
    assert cfg.problem.variables == ("x1", "x2")
    assert cfg.base_path == tmp_path.resolve()

    final = solve(cfg.problem, cfg.solver.method, cfg.solver)[-1]
    assert final.objective_value == pytest.approx(9.0)


def test_load_config_with_problem_path(tmp_path):
    (tmp_path / "lp.json").write_text(json.dumps(PROBLEM), encoding="utf-8")
    cfg = load_config(_write_yaml(tmp_path / "run.yaml", {"problem_path": "lp.json"}))
    assert cfg.solver.method is SolverMethod.TWO_PHASE
    assert cfg.problem.n_constraints == 2


def test_load_config_errors(tmp_path):
    with pytest.raises(ProblemValidationError):
        load_config(_write_yaml(tmp_path / "empty.yaml", {"solver": {}}))
    with pytest.raises(ValueError):
        load_config(_write_yaml(tmp_path / "bad.yaml", {"problem": PROBLEM, "solver": {"big_m": -1}}))
    with pytest.raises(FileNotFoundError):
        load_problem(tmp_path / "missing.json")
    (tmp_path / "lp.txt").write_text("x", encoding="utf-8")
    with pytest.raises(ValueError):
        load_problem(tmp_path / "lp.txt")


def test_trace_history_roundtrip(tmp_path):
    problem = load_problem(_write_yaml(tmp_path / "lp.yaml", PROBLEM))
    steps = solve(problem, SolverMethod.TWO_PHASE)
    count = write_history(tmp_path / "out" / "trace.jsonl", (step.to_dict() for step in steps))
    assert count == len(steps)
    records = read_history(tmp_path / "out" / "trace.jsonl")
    assert len(records) == len(steps)
    assert records[0]["equations"][0] == "Minimize Z = 2x1 + 3x2"
    assert records[-1]["status"] == "OPTIMAL"
    assert records[-1]["objective_value"] == pytest.approx(9.0)


def test_cli_writes_trace_and_dual(tmp_path, capsys):
    problem_path = _write_yaml(tmp_path / "lp.yaml", PROBLEM)
    out_dir = tmp_path / "out"
    code = cli.main(
        ["--problem", str(problem_path), "--method", "two_phase", "--out", str(out_dir), "--dual", "--verify"]
    )
    assert code == 0
    output = capsys.readouterr().out
    assert "Status: OPTIMAL" in output
    assert "Verification passed" in output
    assert (out_dir / "trace.jsonl").exists()
    dual = json.loads((out_dir / "dual.json").read_text())
    assert dual["sense"] == "MAXIMIZE"
    assert dual["objective_coefficients"] == [4.0, 6.0]


def test_cli_rejects_standard_method_with_artificials(tmp_path, capsys):
    problem_path = _write_yaml(tmp_path / "lp.yaml", PROBLEM)
    code = cli.main(["--problem", str(problem_path), "--method", "standard"])
    assert code == 2
    assert "artificial" in capsys.readouterr().err
