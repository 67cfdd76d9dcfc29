# uiharness/cli.py
from __future__ import annotations

"""Command-line interface
------------------------
Print the effective configuration, or open a page and wait for elements to
show up / go away. Thin wrapper around the browser session and wait engine.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Optional, Sequence

import click

from uiharness.core import conditions as cond
from uiharness.core.browser import open_browser
from uiharness.core.errors import HarnessError
from uiharness.utils.config import Settings, get_settings
from uiharness.utils.logger import get_logger, bind, unbind, set_log_level


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False))


async def _wait_on_page(
    url: str,
    visible: Sequence[str],
    hidden: Sequence[str],
    timeout_ms: Optional[int],
    settings: Settings,
) -> None:
    async with open_browser(settings) as browser:
        await browser.navigate(url)
        conditions = [cond.visible(browser.accessor(s)) for s in visible]
        conditions += [cond.not_visible(browser.accessor(s)) for s in hidden]
        await browser.wait_for_any(*conditions, timeout_ms=timeout_ms)


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.version_option(package_name="uiharness")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        set_log_level(log_level.upper())


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after .env & env vars)."""
    s = get_settings()
    _echo_json(s.model_dump(mode="json"))


@cli.command("wait")
@click.argument("url")
@click.option("--visible", "visible", multiple=True, help="Selector that must become visible (repeatable)")
@click.option("--hidden", "hidden", multiple=True, help="Selector that must be hidden or gone (repeatable)")
@click.option("--timeout", "timeout_ms", type=int, default=None, help="Override WAIT_TIMEOUT_MS from settings")
@click.option("--headless/--headed", default=None, help="Override HEADLESS from settings")
def cmd_wait(url: str, visible: Sequence[str], hidden: Sequence[str], timeout_ms: Optional[int], headless: Optional[bool]):
    """
    Open URL and wait until ANY of the given conditions holds.

    Examples:
      uiharness wait https://example.com --visible "h1"
      uiharness wait https://app.local --hidden "#spinner" --visible "//div[@role='alert']"
    """
    if not visible and not hidden:
        click.echo("Provide at least one --visible or --hidden selector.")
        sys.exit(2)

    settings = get_settings()
    if headless is not None:
        settings = settings.model_copy(update={"HEADLESS": headless})
    log = get_logger(__name__)

    bind(run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"))
    try:
        asyncio.run(_wait_on_page(url, visible, hidden, timeout_ms, settings))
    except HarnessError as e:
        log.debug(f"wait on {url} failed", exc_info=True)
        click.echo(f"ERR {url} -> {type(e).__name__}: {e}")
        sys.exit(1)
    finally:
        unbind("run_id")

    click.echo(f"OK  {url}")


def main() -> None:
    cli(prog_name="uiharness")


if __name__ == "__main__":
    main()
