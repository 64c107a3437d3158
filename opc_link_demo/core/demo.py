"""Walk through every OpcLinkClient call and print what comes back."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from .client import OpcLinkClient
from .exceptions import OpcLinkError
from .models import to_jsonable

logger = logging.getLogger(__name__)

Echo = Callable[[str], Any]


def format_result(result: Any) -> str:
    return json.dumps(to_jsonable(result), default=str)


@dataclass
class DemoReport:
    succeeded: int = 0
    failed: int = 0


class _DemoRun:
    def __init__(self, echo: Echo):
        self.echo = echo
        self.report = DemoReport()

    def section(self, title: str) -> None:
        self.echo(f"\n{title}")

    async def must(self, call: Awaitable, label: str) -> Any:
        # no local handler: an error here ends the run
        result = await call
        self.report.succeeded += 1
        self.echo(f"   {label}: {format_result(result)}")
        return result

    async def attempt(self, call: Awaitable, label: str, failure: str, show_error: bool = False) -> Any:
        try:
            result = await call
        except (OpcLinkError, ValueError) as e:
            self.report.failed += 1
            logger.debug("%s failed: %s", label, e)
            self.echo(f"   {failure} - {e}" if show_error else f"   {failure}")
            return None
        self.report.succeeded += 1
        self.echo(f"   {label}: {format_result(result)}")
        return result


async def run_demo(client: OpcLinkClient, echo: Echo = print) -> DemoReport:
    """Run the fixed call sequence against an already connected client."""
    run = _DemoRun(echo)

    echo("=== Ternion OPC Link Client Test Application ===\n")
    echo(f"Using API URL: {client.base_url}\n")

    echo("1. Testing API Information...")
    await run.must(client.get_api_info(), "API Info")

    run.section("2. Testing Health Check...")
    await run.must(client.get_health(), "Health")

    run.section("3. Testing Read Operations...")
    await run.must(client.get_values(), "All cached values")

    run.section("4. Testing Alias Operations...")
    await run.attempt(client.get_alias("bool", 0), "Boolean alias 0", "Boolean alias 0: Not available")
    await run.attempt(client.get_all_aliases("bool"), "All boolean aliases", "All boolean aliases: Not available")

    run.section("5. Testing Node Read Operations...")
    await run.attempt(
        client.read_node("ns=1;s=Boolean.0", force_refresh=True),
        "Read Boolean.0 (generic readNode)",
        "Read Boolean.0: Node not available",
    )
    await run.attempt(client.get_value("ns=1;s=Float.2"), "Cached Float.2", "Cached Float.2: Node not available")

    run.section("6. Testing Convenience Read Methods (Channels)...")
    await run.attempt(client.read_boolean(0), "Read Boolean.0 (convenience)", "Read Boolean.0: Not available")
    await run.attempt(client.read_int16(1, True), "Read Int16.1 (force refresh)", "Read Int16.1: Not available")
    await run.attempt(client.read_float(2), "Read Float.2 (convenience)", "Read Float.2: Not available")

    run.section("7. Testing Convenience Read Methods (Vectors)...")
    await run.attempt(client.read_boolean_vector(), "Read BooleanVector", "Read BooleanVector: Not available")
    await run.attempt(
        client.read_int16_vector(True), "Read Int16Vector (force refresh)", "Read Int16Vector: Not available"
    )
    await run.attempt(client.read_float_vector(), "Read FloatVector", "Read FloatVector: Not available")

    run.section("8. Testing Write Operations...")
    await run.attempt(client.write_boolean(0, True), "Write Boolean.0", "Write Boolean.0: Failed", show_error=True)
    await run.attempt(client.write_int16(1, 42), "Write Int16.1", "Write Int16.1: Failed", show_error=True)
    await run.attempt(client.write_float(2, 3.14159), "Write Float.2", "Write Float.2: Failed", show_error=True)

    echo("\n=== Test Application Completed Successfully ===")
    logger.info("Demo finished: %d succeeded, %d failed", run.report.succeeded, run.report.failed)
    return run.report
