"""
OASTWatch CLI Main Entry Point

Command-line interface for registering a collaborator address and watching
it for out-of-band interactions.
"""

import json
import time
from typing import Dict, Optional

import click

from ..collaborator import build, decode, to_record
from ..core.config import client_options, get_config
from ..core.exceptions import DecodeError, OASTWatchException, PollFailed
from ..core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
def cli(log_level: Optional[str]):
    """
    OASTWatch - out-of-band interaction client.

    Register a unique collaborator address and poll it for DNS, HTTP, LDAP,
    SMB, FTP and SMTP interactions.
    """
    setup_logging(log_level=log_level)


@cli.command("watch")
@click.option("--server", "-s", default=None, help="Correlation server host or URL")
@click.option("--timeout", "-t", type=int, default=None, help="Network timeout in seconds")
@click.option("--token", default=None, help="Authorization token for the server")
@click.option("--interval", "-i", type=float, default=None, help="Seconds between polls")
@click.option("--count", "-n", type=int, default=0, help="Stop after N polls (0 = forever)")
@click.option("--json", "as_json", is_flag=True, help="Print one JSON object per interaction")
def watch(
    server: Optional[str],
    timeout: Optional[int],
    token: Optional[str],
    interval: Optional[float],
    count: int,
    as_json: bool,
):
    """
    Register an address and print interactions as they arrive.

    Example:
        oastwatch watch -s oast.example -i 5
    """
    interval = interval or get_config().poll_interval
    options = client_options(server=server, timeout=timeout, token=token)

    try:
        client = build(options)
    except OASTWatchException as e:
        raise click.ClickException(str(e))

    with client:
        click.echo(f"✓ Registered: {client.address()}", err=as_json)

        polls = 0
        try:
            while True:
                try:
                    for entry in client.poll_entries():
                        _emit(to_record(entry), as_json, protocol=entry.kind.value)
                except PollFailed as e:
                    logger.error(f"Poll failed: {e}")
                    raise click.ClickException(str(e))

                polls += 1
                if count and polls >= count:
                    break
                time.sleep(interval)
        except KeyboardInterrupt:
            logger.info("Watch interrupted by user")


@cli.command("decode")
@click.argument("source", type=click.File("r"), default="-")
@click.option("--strict", is_flag=True, help="Fail on the first unparseable entry")
def decode_entries(source, strict: bool):
    """
    Normalize interaction entries read from a file (one JSON entry per line).

    Example:
        oastwatch decode interactions.jsonl
    """
    lines = [line for line in source.read().splitlines() if line.strip()]
    try:
        entries = decode(lines, strict=strict)
    except DecodeError as e:
        raise click.ClickException(str(e))

    for entry in entries:
        _emit(to_record(entry), as_json=True, protocol=entry.kind.value)


def _emit(record: Dict[str, str], as_json: bool, protocol: str = "") -> None:
    if as_json:
        if protocol:
            record = {"protocol": protocol, **record}
        click.echo(json.dumps(record, sort_keys=True))
        return

    who = record.get("remote_address", "-")
    what = record.get("q_type") or record.get("smtp_from") or ""
    line = f"[{record.get('timestamp', '')}] {protocol.upper()} {record.get('full_id', '')}"
    click.echo(f"{line} from {who} {what}".rstrip())


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
