# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import asyncio
import json
import logging
import sys
from typing import Any

import click

from authttp.client import AuthenticatedHttpClient
from authttp.config import ClientConfig
from authttp.descriptor import parse_descriptor
from authttp.errors import HttpError, InvalidDescriptorError
from authttp.mock import mock_filenames
from authttp.paths import template_parameters
from authttp.token_store import InMemoryTokenStore


def parse_pairs(pairs: tuple[str, ...], decode_values: bool) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter("'%s' is not in key=value format" % pair)
        key, value = pair.split("=", 1)
        if decode_values:
            try:
                result[key] = json.loads(value)
                continue
            except ValueError:
                pass
        result[key] = value
    return result


def render(result: Any) -> str:
    if isinstance(result, bytes):
        return "<%d bytes>" % len(result)
    return json.dumps(result, indent=2, default=str, ensure_ascii=False)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="AUTHTTP_LOG_LEVEL",
    help="Logging level of the client",
)
def cli(log_level: str) -> None:
    logging.basicConfig(level=log_level.upper())


@cli.command()
@click.argument("descriptor", nargs=-1, required=True)
@click.option(
    "--strict",
    is_flag=True,
    help="Fail on unrecognized tokens instead of falling back to GET.",
)
def parse(descriptor: tuple[str, ...], strict: bool) -> None:
    """Show how a request descriptor such as 'SILENT POST /api/plan/:id' is parsed."""
    dsl = " ".join(descriptor)
    try:
        parsed = parse_descriptor(dsl, strict=strict)
    except InvalidDescriptorError as e:
        click.echo(f"Invalid descriptor: {e}", file=sys.stderr)
        sys.exit(2)

    click.echo(
        render(
            {
                "method": parsed.method.value,
                "path": parsed.path_template,
                "mock": parsed.is_mock,
                "silent": parsed.is_silent,
                "path_params": template_parameters(parsed.path_template),
                "mock_files": mock_filenames(parsed.method, parsed.path_template),
            }
        )
    )


@cli.command()
@click.argument("descriptor", nargs=-1, required=True)
@click.option(
    "--base-url",
    type=str,
    envvar="AUTHTTP_BASE_URL",
    required=True,
    help="Base URL of the api service",
)
@click.option(
    "--param",
    "params",
    multiple=True,
    help="Request parameter as key=value, values are decoded as JSON when possible",
)
@click.option(
    "--header",
    "headers",
    multiple=True,
    help="Extra request header as key=value",
)
@click.option(
    "--token",
    type=str,
    envvar="AUTHTTP_TOKEN",
    help="Auth token sent as the Authorization header",
)
@click.option(
    "--timeout",
    type=float,
    envvar="AUTHTTP_TIMEOUT",
    default=45.0,
    help="Request timeout in seconds",
)
@click.option(
    "--unauthorized-codes",
    type=str,
    envvar="AUTHTTP_UNAUTHORIZED_CODES",
    default="101",
    help="Envelope codes meaning unauthorized, separated by '|'",
)
@click.option(
    "--maintenance-code",
    type=int,
    envvar="AUTHTTP_MAINTENANCE_CODE",
    help="Envelope code meaning the service is under maintenance",
)
@click.option(
    "--mock-directory",
    type=click.Path(file_okay=False, dir_okay=True),
    envvar="AUTHTTP_MOCK_DIRECTORY",
    default="mock",
    help="Directory of the JSON fixtures used by MOCK descriptors",
)
def call(
    descriptor: tuple[str, ...],
    base_url: str,
    params: tuple[str, ...],
    headers: tuple[str, ...],
    token: str | None,
    timeout: float,
    unauthorized_codes: str,
    maintenance_code: int | None,
    mock_directory: str,
) -> None:
    """Send one request described by DESCRIPTOR and print the response."""
    try:
        endpoint_descriptor = parse_descriptor(" ".join(descriptor))
    except InvalidDescriptorError as e:
        click.echo(f"Invalid descriptor: {e}", file=sys.stderr)
        sys.exit(2)

    config = ClientConfig(
        base_url=base_url,
        timeout=timeout,
        unauthorized_codes=unauthorized_codes,
        maintenance_code=maintenance_code,
        mock_directory=mock_directory,
    )

    async def run() -> Any:
        client = AuthenticatedHttpClient(
            config, token_store=InMemoryTokenStore(token)
        )
        async with client:
            return await client.send(
                endpoint_descriptor,
                parse_pairs(params, decode_values=True),
                headers=parse_pairs(headers, decode_values=False),
            )

    try:
        result = asyncio.run(run())
    except HttpError as e:
        click.echo(str(e), file=sys.stderr)
        sys.exit(1)

    click.echo(render(result))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
