#!/usr/bin/env python3
"""
jsonrpc-do CLI

Make JSON-RPC calls against a WebSocket endpoint.

Usage:
    jsonrpc-do call METHOD [PARAMS]...   - Make one call and print the result
    jsonrpc-do batch [FILE]              - Send JSON lines from FILE as one batch
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click

from .config import configure, configure_from_env, get_config
from .errors import InvalidPayloadError, JsonRpcDoError
from .methods import Method
from .session import BatchResult, RpcSession
from .transport import WebSocketTransport


# Color codes for terminal output
class Colors:
    RESET = "\x1b[0m"
    RED = "\x1b[31m"


def print_error(message: str, error: Exception | None = None) -> None:
    """Print error message."""
    click.echo(f"{Colors.RED}Error:{Colors.RESET} {message}", err=True)
    if error and str(error):
        click.echo(str(error), err=True)


def run_async(coro: Any) -> Any:
    """Run an async function synchronously."""
    return asyncio.run(coro)


def parse_param(value: str) -> Any:
    """Read a command-line parameter as JSON, or keep it as a string."""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def parse_batch_line(line: str, lineno: int) -> Method:
    """Build a Method from one ``{"method": ..., "params": [...]}`` line."""
    try:
        spec = json.loads(line)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"line {lineno}: invalid JSON ({e})") from e

    if not isinstance(spec, dict) or not isinstance(spec.get("method"), str):
        raise click.ClickException(f"line {lineno}: expected an object with a 'method' string")

    try:
        return Method(spec["method"], spec.get("params", []))
    except InvalidPayloadError as e:
        raise click.ClickException(f"line {lineno}: {e.message}") from e


def open_session() -> RpcSession:
    """Session on the configured endpoint; connects on first send."""
    config = get_config()
    return RpcSession(WebSocketTransport(config.url), timeout=config.timeout)


@click.group()
@click.option("--debug", is_flag=True, help="Log protocol traffic to stderr")
@click.option("--url", default=None, help="Endpoint URL (default: $JSONRPC_DO_URL)")
@click.option("--timeout", type=float, default=None, help="Connect timeout in seconds")
def cli(debug: bool, url: str | None, timeout: float | None) -> None:
    """
    jsonrpc-do CLI - JSON-RPC over WebSocket
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    configure_from_env()
    configure(url=url, timeout=timeout)


@cli.command()
@click.argument("method")
@click.argument("params", nargs=-1)
def call(method: str, params: tuple[str, ...]) -> None:
    """Call METHOD with PARAMS (each read as JSON when possible)."""
    run_async(call_command(method, [parse_param(p) for p in params]))


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
def batch(source: Any) -> None:
    """Send every JSON line of SOURCE (default: stdin) in one batch."""
    methods = [
        parse_batch_line(line, lineno)
        for lineno, line in enumerate(source.read().splitlines(), 1)
        if line.strip()
    ]
    run_async(batch_command(methods))


async def call_command(method: str, params: list[Any]) -> None:
    """Call command - one request, one result."""
    session = open_session()

    try:
        result = await session.dispatch(Method(method, params))
    except JsonRpcDoError as e:
        print_error(f"{method} failed", e)
        sys.exit(1)
    finally:
        await session.close()

    click.echo(json.dumps(result))


async def batch_command(methods: list[Method]) -> None:
    """Batch command - all requests in one message, one output line each."""
    session = open_session()
    session.set_batch_mode(True)

    try:
        for method in methods:
            await session.dispatch(method)
        result = await session.flush()
    except JsonRpcDoError as e:
        print_error("Batch failed", e)
        sys.exit(1)
    finally:
        await session.close()

    print_batch(result)
    if not result.ok:
        sys.exit(1)


def print_batch(result: BatchResult) -> None:
    """One JSON line per call, in dispatch order."""
    for outcome in result.outcomes:
        if outcome.error is not None:
            error = {"code": outcome.error.code, "message": outcome.error.message}
            click.echo(json.dumps({"error": error}))
        else:
            click.echo(json.dumps({"result": outcome.value}))


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
