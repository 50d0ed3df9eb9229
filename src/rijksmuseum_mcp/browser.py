"""Open URLs with the host system's default handler."""

import asyncio
import logging
import os
import sys
from collections.abc import Awaitable, Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class BrowserLaunchResult(BaseModel):
    """Outcome of a browser launch attempt."""

    opened: bool
    detail: str | None = None

    model_config = {"frozen": True}


BrowserLauncher = Callable[[str], Awaitable[BrowserLaunchResult]]


def open_command(url: str, platform: str | None = None) -> list[str]:
    """Build the command that opens ``url`` on a POSIX platform."""
    platform = platform or sys.platform
    if platform == "darwin":
        return ["open", url]
    return ["xdg-open", url]


async def _start_file(url: str) -> BrowserLaunchResult:
    # No shell involved, so "&" and other cmd metacharacters stay in the URL.
    try:
        await asyncio.to_thread(os.startfile, url)
    except OSError as e:
        logger.warning("Could not open %s: %s", url, e)
        return BrowserLaunchResult(opened=False, detail=str(e))
    return BrowserLaunchResult(opened=True)


async def open_in_browser(url: str, platform: str | None = None) -> BrowserLaunchResult:
    """Open a URL in the default browser.

    Launch failures are reported in the result, never raised.

    Args:
        url: The URL to open.
        platform: Platform name, defaults to ``sys.platform``.

    Returns:
        BrowserLaunchResult describing whether the browser was opened.
    """
    platform = platform or sys.platform
    if platform == "win32":
        return await _start_file(url)

    command = open_command(url, platform)
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await process.communicate()
    except OSError as e:
        logger.warning("Could not run %s: %s", command[0], e)
        return BrowserLaunchResult(opened=False, detail=str(e))

    if process.returncode != 0:
        detail = stderr.decode(errors="replace").strip() or f"exit status {process.returncode}"
        logger.warning("%s failed: %s", command[0], detail)
        return BrowserLaunchResult(opened=False, detail=f"{command[0]} failed: {detail}")
    return BrowserLaunchResult(opened=True)
