# src/animflow/cli.py
"""animflow Command Line Interface.

Entry point for the animflow CLI tool. Results go to stdout as JSON; logs go
to stderr.

Exit codes:
    0  success
    1  the flow is invalid (domain error, missing or malformed file)
    2  engine invariant violated (a bug in animflow, please report it)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
import typer

from animflow import __version__
from animflow.contracts.errors import DomainError, EngineInvariantError
from animflow.core.canonical import to_json_safe
from animflow.core.config import FlowDocument, load_flow
from animflow.core.dag import FlowGraph
from animflow.engine.orchestrator import FlowOrchestrator, RunResult

__all__ = ["app"]

slog = structlog.get_logger(__name__)

app = typer.Typer(
    name="animflow",
    help="animflow: headless execution of animation flow graphs.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"animflow version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """animflow: headless execution of animation flow graphs."""
    from animflow.core.logging import configure_logging

    try:
        configure_logging(json_output=json_logs, level=log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


def _load_or_exit(flow: Path) -> FlowDocument:
    try:
        return load_flow(flow.expanduser())
    except FileNotFoundError:
        typer.echo(f"Error: Flow file not found: {flow}", err=True)
        raise typer.Exit(1) from None
    except DomainError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(1) from None


def _fingerprint_or_none(result: RunResult) -> str | None:
    try:
        return result.fingerprint()
    except ValueError as e:
        slog.warning("run_fingerprint_unavailable", run_id=result.run_id, reason=str(e))
        return None


def summarize_run(result: RunResult) -> dict[str, Any]:
    """JSON-ready summary: scenes with their resolved batch partitions.

    Non-finite numbers are rendered as strings; see to_json_safe.
    """
    partitions = result.partitions()
    summary: dict[str, Any] = {
        "run_id": result.run_id,
        "fingerprint": _fingerprint_or_none(result),
        "execution_order": list(result.execution_order),
        "skipped_nodes": list(result.skipped_nodes),
        "current_time": result.context.current_time,
        "animation_count": len(result.context.scene_animations),
        "scenes": {
            scene_id: {
                "duration": scene.duration,
                "background_color": scene.background_color,
                "partitions": [partition.to_dict() for partition in partitions[scene_id]],
            }
            for scene_id, scene in result.scenes.items()
        },
        "debug_log": [
            {"node_id": entry.node_id, "sequence": entry.sequence, "action": entry.action, "data": dict(entry.data)}
            for entry in result.context.execution_log
        ],
    }
    return to_json_safe(summary)


@app.command()
def run(
    flow: Path = typer.Argument(..., help="Path to a flow document (YAML or JSON)."),
    debug_node: str | None = typer.Option(
        None,
        "--debug-node",
        "-d",
        help="Run only this node and its ancestors, capturing its debug log.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the JSON summary to this file instead of stdout.",
    ),
) -> None:
    """Execute a flow and print a JSON summary of its scenes."""
    document = _load_or_exit(flow)
    if debug_node is not None:
        settings = document.settings.model_copy(update={"debug_target_node_id": debug_node})
        document = document.model_copy(update={"settings": settings})

    orchestrator = FlowOrchestrator(document.settings)
    try:
        result = orchestrator.run_flow(document)
    except DomainError as e:
        typer.echo(json.dumps(to_json_safe({"event": "error", **e.to_dict()}), default=str), err=True)
        raise typer.Exit(1) from None
    except EngineInvariantError as e:
        typer.echo(json.dumps({"event": "engine_invariant_violation", "error": str(e)}), err=True)
        raise typer.Exit(2) from None

    rendered = json.dumps(summarize_run(result), indent=2, allow_nan=False, default=str)
    if output is not None:
        output.write_text(rendered + "\n", encoding="utf-8")
        typer.echo(f"Wrote run summary to {output}", err=True)
    else:
        typer.echo(rendered)


@app.command()
def validate(
    flow: Path = typer.Argument(..., help="Path to a flow document (YAML or JSON)."),
) -> None:
    """Check a flow's structure (node types, connections, cycles) without running it."""
    document = _load_or_exit(flow)
    try:
        graph = FlowGraph.from_flow(document.flow_nodes(), document.flow_edges())
    except DomainError as e:
        typer.echo(f"Invalid flow: {e.message}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Flow valid: {graph.node_count} nodes, {len(graph.edges)} edges")


if __name__ == "__main__":
    app()
