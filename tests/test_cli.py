import csv
import json
from pathlib import Path

from typer.testing import CliRunner

from flowcheck.cli import app

BENCH_DIR = Path(__file__).resolve().parent.parent / "bench" / "structural"

runner = CliRunner()


def _wf(case: str) -> str:
    return str(BENCH_DIR / case / "workflow.json")


def test_validate_clean_workflow_exits_zero():
    result = runner.invoke(app, ["validate", "-i", _wf("S01_linear_ok")])
    assert result.exit_code == 0, result.stdout
    assert result.stdout.startswith("PASS")


def test_validate_with_errors_exits_one():
    result = runner.invoke(app, ["validate", "-i", _wf("S02_orphan")])
    assert result.exit_code == 1
    assert "OrphanedNode" in result.stdout
    assert "UnreachableFromTrigger" in result.stdout


def test_log_dir_writes_rotating_log(tmp_path):
    logs = tmp_path / "logs"
    result = runner.invoke(app, ["--log-dir", str(logs), "validate", "-i", _wf("S02_orphan")])
    assert result.exit_code == 1
    text = (logs / "flowcheck.log").read_text(encoding="utf-8")
    assert "2 error(s), 0 warning(s)" in text


def test_validate_malformed_exits_two():
    result = runner.invoke(app, ["validate", "-i", _wf("S11_malformed")])
    assert result.exit_code == 2


def test_json_output_and_report_file(tmp_path):
    report = tmp_path / "out" / "report.json"
    result = runner.invoke(app, ["validate", "-i", _wf("S03_if_incomplete"), "--json", "--report", str(report)])
    assert result.exit_code == 1
    printed = json.loads(result.stdout)
    assert printed["valid"] is False
    assert printed["findings"][0]["kind"] == "IncompleteBranch"
    assert printed["findings"][0]["port"] == 1
    assert json.loads(report.read_text(encoding="utf-8")) == printed


def test_strict_fails_on_warnings():
    assert runner.invoke(app, ["validate", "-i", _wf("S09_hardcoded_secret")]).exit_code == 0
    assert runner.invoke(app, ["validate", "-i", _wf("S09_hardcoded_secret"), "--strict"]).exit_code == 1


def test_registry_override_changes_outcome(tmp_path):
    reg = tmp_path / "types.yaml"
    reg.write_text("types:\n  n8n-nodes-base.code:\n    trigger: true\n", encoding="utf-8")
    # With "Leftover" declared a trigger nothing is orphaned any more
    result = runner.invoke(app, ["validate", "-i", _wf("S02_orphan"), "-r", str(reg)])
    assert result.exit_code == 0, result.stdout


def test_bad_registry_exits_two(tmp_path):
    reg = tmp_path / "types.json"
    reg.write_text(json.dumps({"types": {"x.y": {"outputs": "two"}}}), encoding="utf-8")
    result = runner.invoke(app, ["validate", "-i", _wf("S01_linear_ok"), "-r", str(reg)])
    assert result.exit_code == 2


def test_bench_writes_csv(tmp_path):
    out = tmp_path / "report.csv"
    result = runner.invoke(app, ["bench", "--glob", str(BENCH_DIR / "*" / "workflow.json"), "--out", str(out)])
    assert result.exit_code == 0, result.stdout

    with out.open(encoding="utf-8", newline="") as f:
        rows = {r["id"]: r for r in csv.DictReader(f)}
    assert rows["S01_linear_ok"]["status"] == "ok"
    assert rows["S02_orphan"]["status"] == "fail"
    assert rows["S02_orphan"]["kinds"] == "OrphanedNode;UnreachableFromTrigger"
    assert rows["S11_malformed"]["status"] == "malformed"


def test_types_reads_registry_from_env(tmp_path):
    reg = tmp_path / "types.json"
    reg.write_text(json.dumps({"replace": True, "types": {"acme.gate": {"outputs": 2}}}), encoding="utf-8")
    result = runner.invoke(app, ["types"], env={"FLOWCHECK_REGISTRY": str(reg)})
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "acme.gate": {"outputs": 2, "required": [], "trigger": False, "terminal": False, "code_fields": []}
    }
