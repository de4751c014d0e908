"""CLI entry point for claude-messages."""

import asyncio
import logging

import click
import uvicorn

from .backends import get_default_ranker
from .classifier import get_profile
from .config import ScanLimits
from .core import INVALID_TIME, SearchStatus
from .export import format_local_time, message_to_markdown, messages_to_json
from .extractor import extract_messages, latest_message
from .feed import EMPTY_STATE_TEXT, NO_HISTORY, NO_RESULTS, SEARCH_FAILED, UPGRADE_REQUIRED
from .grouping import format_section_title, group_by_date
from .search import exact_search, semantic_search

DIRECTIONS = click.Choice(["sent", "received"])


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log scan progress to stderr.")
def main(verbose: bool):
    """Browse messages you sent to and received from Claude Code."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the web API."""
    click.echo(f"Starting claude-messages on http://{host}:{port}")
    uvicorn.run("claude_messages.server:app", host=host, port=port, reload=False)


def _print_line(msg):
    when = format_local_time(msg.timestamp) if msg.timestamp is not INVALID_TIME else "????-??-?? ??:??"
    click.echo(f"{msg.id:<14} {when}  {msg.preview.replace(chr(10), ' ')}")


def _list(direction: str, search: str | None, semantic: bool, grouped: bool, as_json: bool):
    profile = get_profile(direction)
    result = asyncio.run(extract_messages(profile, limits=ScanLimits.from_env()))
    messages = result.messages

    empty_state = NO_HISTORY
    if search and semantic:
        outcome = asyncio.run(semantic_search(messages, search, get_default_ranker()))
        messages = outcome.messages
        if outcome.status is SearchStatus.ACCESS_REQUIRED:
            click.echo(EMPTY_STATE_TEXT[UPGRADE_REQUIRED] + " Falling back to text search.", err=True)
            empty_state = UPGRADE_REQUIRED
        elif outcome.status is SearchStatus.FAILED:
            empty_state = SEARCH_FAILED
        else:
            empty_state = NO_RESULTS
    elif search:
        messages = exact_search(messages, search)
        empty_state = NO_RESULTS

    if as_json:
        click.echo(messages_to_json(messages))
        return

    if not messages:
        click.echo(EMPTY_STATE_TEXT[empty_state if result.messages else NO_HISTORY])
        return

    if grouped:
        for group in group_by_date(messages):
            click.secho(format_section_title(group.category, len(group.messages)), bold=True)
            for msg in group.messages:
                _print_line(msg)
            click.echo()
    else:
        for msg in messages:
            _print_line(msg)


@main.command()
@click.option("--search", "-s", default=None, help="Only show messages containing this text.")
@click.option("--semantic", is_flag=True, help="Use AI search for --search.")
@click.option("--grouped", "-g", is_flag=True, help="Group by date section.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a list.")
def sent(search, semantic, grouped, as_json):
    """List recent messages you sent to Claude."""
    _list("sent", search, semantic, grouped, as_json)


@main.command()
@click.option("--search", "-s", default=None, help="Only show messages containing this text.")
@click.option("--semantic", is_flag=True, help="Use AI search for --search.")
@click.option("--grouped", "-g", is_flag=True, help="Group by date section.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a list.")
def received(search, semantic, grouped, as_json):
    """List recent messages Claude sent back."""
    _list("received", search, semantic, grouped, as_json)


@main.command()
@click.argument("direction", type=DIRECTIONS)
def latest(direction: str):
    """Print the newest sent or received message."""
    msg = asyncio.run(latest_message(get_profile(direction), limits=ScanLimits.from_env()))
    if msg is None:
        raise click.ClickException(f"No {direction} messages found in your Claude history")
    click.echo(message_to_markdown(msg))
