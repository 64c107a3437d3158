import asyncio
import json
import math
import sys
from typing import Any, Callable, Optional

import typer

from ..config import get_settings
from ..core.client import OpcLinkClient
from ..core.demo import run_demo
from ..core.exceptions import OpcLinkError
from ..core.models import AliasType, to_jsonable
from ..logging_config import configure_logging

app = typer.Typer(help="Exercise the QNetLinks OPC REST API through OpcLinkClient.")


def build_client(base_url: str, timeout: float) -> OpcLinkClient:
    return OpcLinkClient(base_url, timeout=timeout)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(None, help="API base URL [env: API_BASE_URL]"),
    timeout: Optional[float] = typer.Option(None, help="Request timeout in seconds [env: API_TIMEOUT]"),
    log_level: Optional[str] = typer.Option(None, help="Log level [env: LOG_LEVEL]"),
):
    settings = get_settings()
    configure_logging(settings.log_level if log_level is None else log_level)
    ctx.obj = build_client(
        settings.api_base_url if base_url is None else base_url,
        settings.request_timeout if timeout is None else timeout,
    )


def _run(ctx: typer.Context, call: Callable[[OpcLinkClient], Any], what: str):
    """Run one client call and print the result as JSON."""
    client: OpcLinkClient = ctx.obj

    async def go():
        async with client.connect():
            return await call(client)

    try:
        result = asyncio.run(go())
    except (OpcLinkError, ValueError) as e:
        typer.echo(f"Error {what} from {client.base_url}: {e}", err=True)
        sys.exit(1)
    typer.echo(json.dumps(to_jsonable(result), indent=2, default=str))


@app.command()
def demo(ctx: typer.Context):
    """Call every client operation in order and print the outcomes."""
    client: OpcLinkClient = ctx.obj

    async def go():
        async with client.connect():
            return await run_demo(client, echo=typer.echo)

    try:
        asyncio.run(go())
    except (OpcLinkError, ValueError) as e:
        typer.echo("\n=== Application Error ===", err=True)
        typer.echo(f"Error: {e}", err=True)
        sys.exit(1)


@app.command()
def info(ctx: typer.Context):
    """Show API information."""
    _run(ctx, lambda c: c.get_api_info(), "reading API info")


@app.command()
def health(ctx: typer.Context):
    """Show API health."""
    _run(ctx, lambda c: c.get_health(), "checking health")


@app.command()
def values(ctx: typer.Context):
    """List all cached values."""
    _run(ctx, lambda c: c.get_values(), "reading cached values")


@app.command()
def value(ctx: typer.Context, node_id: str):
    """Show the cached value of a node."""
    _run(ctx, lambda c: c.get_value(node_id), f"reading cached {node_id}")


@app.command()
def read(ctx: typer.Context, node_id: str, force_refresh: bool = False):
    """Read a node, optionally bypassing the API cache."""
    _run(ctx, lambda c: c.read_node(node_id, force_refresh=force_refresh), f"reading {node_id}")


@app.command()
def alias(ctx: typer.Context, alias_type: AliasType, index: Optional[int] = typer.Argument(None)):
    """Read one alias, or every alias of a type when INDEX is omitted."""
    if index is None:
        _run(ctx, lambda c: c.get_all_aliases(alias_type), f"reading {alias_type.value} aliases")
    else:
        _run(ctx, lambda c: c.get_alias(alias_type, index), f"reading {alias_type.value} alias {index}")


@app.command()
def write(
    ctx: typer.Context,
    node_id: str,
    value: str,
    type: str = typer.Option("auto", help="auto, bool, int16 or float"),
):
    """Write a value to a node."""
    try:
        typed_value = coerce_value(value, type)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        sys.exit(2)
    _run(ctx, lambda c: c.write_node(node_id, typed_value), f"writing {value} to {node_id}")


def coerce_value(value: str, type: str = "auto"):
    """Turn a command-line string into the value sent to the API."""
    lowered = value.strip().lower()
    if type == "bool":
        if lowered in ("true", "1", "on"):
            return True
        if lowered in ("false", "0", "off"):
            return False
        raise ValueError(f"Not a boolean: {value!r}")
    if type == "int16":
        number = int(value)
        if not -32768 <= number <= 32767:
            raise ValueError(f"Int16 value {number} out of range")
        return number
    if type == "float":
        return _finite(float(value))
    if type != "auto":
        raise ValueError(f"Unknown value type: {type!r}")

    # Try integer first, then float, then boolean; keep as string otherwise
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        pass
    else:
        return _finite(number)
    if lowered in ("true", "false"):
        return lowered == "true"
    return value


def _finite(number: float) -> float:
    if not math.isfinite(number):
        raise ValueError(f"Float value must be finite, got {number}")
    return number


if __name__ == "__main__":
    app()
