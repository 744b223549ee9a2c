from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, TypeVar

import typer
import yaml
from fastapi.encoders import jsonable_encoder

from sample_buckets.cluster import evaluator_scope
from sample_buckets.logging_config import configure_logging
from sample_buckets.models import Selection
from sample_buckets.services.errors import SampleBucketsException
from sample_buckets.services.evaluator import SampleBucketsEvaluator
from sample_buckets.transport import ClusterRequestError

configure_logging()
logger = logging.getLogger(__name__)
app = typer.Typer(help="Sample buckets CLI", pretty_exceptions_show_locals=False)

T = TypeVar("T")


def _run(operation: Callable[[SampleBucketsEvaluator], Awaitable[T]]) -> T:
    async def _call() -> T:
        async with evaluator_scope() as evaluator:
            return await operation(evaluator)

    try:
        return asyncio.run(_call())
    except (SampleBucketsException, ClusterRequestError) as e:
        logger.warning("CLI command failed: %s", e)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _parse_selection(pairs: list[str], selection_json: str | None) -> Selection:
    if pairs and selection_json is not None:
        raise ValueError("Provide either NAME=QUOTA arguments or --selection-json, not both")

    if selection_json is not None:
        try:
            parsed = json.loads(selection_json)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON for --selection-json: {exc.msg}") from exc
        if not isinstance(parsed, dict):
            raise ValueError("--selection-json must decode to a JSON object")
        return parsed

    selection: dict[str, Any] = {}
    for pair in pairs:
        name, sep, quota = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected NAME=QUOTA, got {pair!r}")
        selection[name] = quota
    return selection


def _echo_yaml_entity(entity: object) -> None:
    encoded = jsonable_encoder(entity)
    typer.echo(yaml.safe_dump(encoded, sort_keys=False), nl=False)


@app.command("list-samples")
def list_samples() -> None:
    _echo_yaml_entity(_run(lambda evaluator: evaluator.list_samples()))


@app.command("check")
def check(
    pairs: list[str] = typer.Argument(None, metavar="NAME=QUOTA", help="Sample name and per-node RAM quota in bytes."),
    selection_json: str | None = typer.Option(
        None,
        "--selection-json",
        help="JSON object mapping sample names to per-node RAM quotas, e.g. '{\"beer-sample\": 104857600}'.",
    ),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 2 when any warning is raised."),
) -> None:
    try:
        selection = _parse_selection(pairs or [], selection_json)
    except ValueError as e:
        logger.warning("Invalid selection input: %s", e)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    state = _run(lambda evaluator: evaluator.evaluate(selection))
    _echo_yaml_entity(state)
    if strict and state.blocked:
        raise typer.Exit(code=2)


@app.command("install")
def install(names: list[str] = typer.Argument(..., help="Names of the samples to install.")) -> None:
    selection = {name: True for name in names}
    submitted = _run(lambda evaluator: evaluator.install(selection))
    _echo_yaml_entity({"submitted": submitted})


if __name__ == "__main__":
    app()
