"""Command line entry point for calling declared operations."""

from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from lather.config import get_settings
from lather.errors import LatherError
from lather.logging_utils import configure_logging
from lather.operation import Operation

app = typer.Typer(name="lather", help="Call declarative SOAP operations.", add_completion=False)


def load_operation(target: str, app_dir: str | Path | None = None) -> type[Operation]:
    """Import ``package.module:ClassName`` and check it is an operation.

    ``app_dir`` is put first on ``sys.path`` so modules next to the caller import.
    """

    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"expected MODULE:CLASS, got {target!r}")
    if app_dir is not None:
        path = str(Path(app_dir).resolve())
        if path not in sys.path:
            sys.path.insert(0, path)
            importlib.invalidate_caches()
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"cannot import {module_name}: {exc}") from exc
    operation_class = getattr(module, attr, None)
    if not isinstance(operation_class, type) or not issubclass(operation_class, Operation):
        raise typer.BadParameter(f"{target} is not an Operation subclass")
    return operation_class


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def parse_params(pairs: list[str]) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}")
        params[key] = _parse_value(value)
    return params


@app.command("describe")
def describe(
    target: str = typer.Argument(..., help="Operation as MODULE:CLASS"),
    app_dir: str = typer.Option(".", "--app-dir", help="Directory to import MODULE from"),
) -> None:
    """Print the declarations of an operation."""

    operation_class = load_operation(target, app_dir)
    typer.echo(json.dumps(operation_class.describe().summary(), indent=2))


@app.command("call")
def call(
    target: str = typer.Argument(..., help="Operation as MODULE:CLASS"),
    app_dir: str = typer.Option(".", "--app-dir", help="Directory to import MODULE from"),
    param: Optional[list[str]] = typer.Option(None, "--param", "-p", help="Call parameter as key=value"),
    where: tuple[str, str, str] = typer.Option((None, None, None), "--where", help="Filter as KEY OPERATOR VALUE"),
) -> None:
    """Call an operation and print its formatted response as JSON."""

    settings = get_settings()
    configure_logging(profile=settings.log_profile, level=settings.log_level)

    operation_class = load_operation(target, app_dir)
    params = parse_params(param or [])
    try:
        operation = operation_class(settings=settings)
        result = operation.call(params) if params else operation.call()
        if where[0] is not None:
            key, check, value = where
            result = operation.where(key, check, _parse_value(value))
    except LatherError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(json.dumps(result, indent=2, ensure_ascii=False, default=str))


def main() -> None:
    app()
