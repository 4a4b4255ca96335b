"""Terminal line reader for interactive sessions."""

from __future__ import annotations

import asyncio

from rich.console import Console


class ConsoleLineReader:
    """Ask questions on a rich console without blocking the event loop."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    async def question(self, prompt: str) -> str:
        # Console.input blocks; keep it off the event loop
        return await asyncio.to_thread(self.console.input, prompt, markup=False)
