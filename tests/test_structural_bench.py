import json
from pathlib import Path

import pytest

from flowcheck.errors import MalformedGraph
from flowcheck.structural.checker import validate
from flowcheck.structural.parser import load_workflow

BENCH_DIR = Path(__file__).resolve().parent.parent / "bench" / "structural"


@pytest.mark.parametrize("case_dir", sorted(BENCH_DIR.glob("S*")), ids=lambda p: p.name)
def test_structural_bench(case_dir: Path):
    """
    Structural benchmark:
    - load workflow.json
    - load expect.json
    - run validate
    - check coarse-grained properties (validity, counts, kinds per node)
    """
    wf_file = case_dir / "workflow.json"
    exp_file = case_dir / "expect.json"

    assert wf_file.exists(), f"Missing workflow.json in {case_dir}"
    assert exp_file.exists(), f"Missing expect.json in {case_dir}"

    with exp_file.open("r", encoding="utf-8") as f:
        expect = json.load(f)
    asserts = expect.get("assert") or {}

    # ---- malformed input never reaches the checks ----
    if asserts.get("malformed"):
        with pytest.raises(MalformedGraph):
            load_workflow(wf_file)
        return

    report = validate(load_workflow(wf_file))
    kinds = {f.kind.value for f in report.findings}

    if "valid" in asserts:
        assert report.ok == asserts["valid"], f"{case_dir.name}: findings={[str(f) for f in report.findings]}"

    if "errors" in asserts:
        assert len(report.errors) == asserts["errors"], f"{case_dir.name}: errors={[str(f) for f in report.errors]}"

    if "warnings" in asserts:
        assert len(report.warnings) == asserts["warnings"], f"{case_dir.name}: warnings={[str(f) for f in report.warnings]}"

    for kind in asserts.get("has", []):
        assert kind in kinds, f"{case_dir.name}: expected {kind} in {sorted(kinds)}"

    for kind in asserts.get("not_has", []):
        assert kind not in kinds, f"{case_dir.name}: unexpected {kind}"

    # ---- exact kinds per node ----
    for node_id, expected in (asserts.get("nodes") or {}).items():
        got = sorted(f.kind.value for f in report.for_node(node_id))
        assert got == sorted(expected), f"{case_dir.name}: node {node_id} has {got}, expected {expected}"

    if "references" in asserts:
        refs = {f.reference for f in report.findings if f.reference}
        for ref in asserts["references"]:
            assert ref in refs, f"{case_dir.name}: no finding references '{ref}'"

    if "reachable" in asserts:
        assert report.summary["reachable"] == asserts["reachable"]

    if "acyclic" in asserts:
        assert report.summary["acyclic"] == asserts["acyclic"]
