#!/usr/bin/env python3
# flowcheck/cli.py

import json
from pathlib import Path
from typing import Optional

import typer

from flowcheck.errors import FlowcheckError
from flowcheck.structural.checker import validate as validate_graph
from flowcheck.structural.parser import load_workflow
from flowcheck.structural.registry import NodeTypeRegistry, load_registry
from flowcheck.utils.io import write_csv, write_text
from flowcheck.utils.logger import add_file_handler, get_logger

log = get_logger("cli")

app = typer.Typer(help="flowcheck - static validation of n8n-style workflow graphs")

EXIT_MALFORMED = 2


@app.callback()
def main(
    log_dir: Optional[Path] = typer.Option(
        None, "--log-dir", envvar="FLOWCHECK_LOG_DIR",
        help="Also write logs to a rotating flowcheck.log in this directory",
    ),
):
    if log_dir is not None:
        log.debug("logging to %s", add_file_handler(log_dir))


def _registry(path: Optional[Path]) -> NodeTypeRegistry:
    if path is None:
        return NodeTypeRegistry.default()
    return load_registry(path)


@app.command()
def validate(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to workflow JSON/YAML"),
    registry: Optional[Path] = typer.Option(
        None, "--registry", "-r", envvar="FLOWCHECK_REGISTRY", exists=True, readable=True,
        help="Node-type table override (JSON/YAML)",
    ),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report to this path"),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON report instead of text"),
    strict: bool = typer.Option(False, "--strict", help="Fail on warnings too"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show graph summary"),
):
    """
    Validate one workflow. Exit code 0 means no error findings, 1 means at
    least one (or any finding with --strict), 2 means the input is not a workflow.
    """
    try:
        reg = _registry(registry)
        graph = load_workflow(input)
    except FlowcheckError as e:
        log.error("%s", e)
        raise typer.Exit(code=EXIT_MALFORMED)

    rep = validate_graph(graph, reg)
    log.info("%s: %d error(s), %d warning(s)", input, len(rep.errors), len(rep.warnings))

    if report is not None:
        write_text(report, rep.to_json() + "\n")
        log.info("wrote report to %s", report)

    if as_json:
        print(rep.to_json())
    else:
        status = "PASS" if rep.exit_code(strict) == 0 else "FAIL"
        print(f"{status}: {input} ({len(rep.errors)} error(s), {len(rep.warnings)} warning(s))")
        for f in rep.findings:
            print(f"- {f}")
        if verbose:
            print("[debug] summary:", json.dumps(rep.summary, sort_keys=True))

    raise typer.Exit(code=rep.exit_code(strict))


@app.command()
def bench(
    glob: str = typer.Option("bench/structural/*/workflow.json", "--glob", help="Glob for workflow files"),
    out: Path = typer.Option(Path("experiments/results/report.csv"), "--out", help="CSV path to write results"),
    registry: Optional[Path] = typer.Option(
        None, "--registry", "-r", envvar="FLOWCHECK_REGISTRY", exists=True, readable=True,
        help="Node-type table override (JSON/YAML)",
    ),
):
    """
    Batch-validate workflows and export a CSV report. Malformed files are
    recorded as such instead of aborting the run.
    """
    import glob as _glob

    try:
        reg = _registry(registry)
    except FlowcheckError as e:
        log.error("%s", e)
        raise typer.Exit(code=EXIT_MALFORMED)

    rows = []
    for fp_str in sorted(_glob.glob(glob)):
        fp = Path(fp_str)
        try:
            graph = load_workflow(fp)
        except FlowcheckError as e:
            log.warning("[skip] %s: %s", fp, e)
            rows.append([fp.parent.name, str(fp), "malformed", "", "", ""])
            continue

        rep = validate_graph(graph, reg)
        kinds = sorted({f.kind.value for f in rep.findings})
        rows.append([
            fp.parent.name,
            str(fp),
            "ok" if rep.ok else "fail",
            len(rep.errors),
            len(rep.warnings),
            ";".join(kinds),
        ])

    write_csv(out, rows, header=["id", "path", "status", "errors", "warnings", "kinds"])
    print(f"[ok] wrote {out} ({len(rows)} workflow(s))")


@app.command()
def types(
    registry: Optional[Path] = typer.Option(
        None, "--registry", "-r", envvar="FLOWCHECK_REGISTRY", exists=True, readable=True,
        help="Node-type table override (JSON/YAML)",
    ),
):
    """Print the effective node-type table as JSON."""
    try:
        reg = _registry(registry)
    except FlowcheckError as e:
        log.error("%s", e)
        raise typer.Exit(code=EXIT_MALFORMED)
    print(json.dumps(reg.to_dict(), indent=2, sort_keys=True))


if __name__ == "__main__":
    app()
