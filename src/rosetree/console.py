"""Console output, prompts and logging setup, all on top of ``rich``."""

import logging
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm, Prompt
from rich.table import Table

LOGGER_NAME = "rosetree"


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> logging.Logger:
    """
    Configures the base ``rosetree`` logger once and returns it.

    Args:
        verbose (bool): Log at DEBUG instead of INFO.
        console (Console, optional): The console the handler writes to.

    Returns:
        logging.Logger: The configured base logger.
    """
    level = logging.DEBUG if verbose else logging.INFO
    base = logging.getLogger(LOGGER_NAME)
    base.setLevel(level)
    if base.handlers:
        return base

    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    base.addHandler(handler)
    base.propagate = False
    return base


class ConsoleManager:
    """A thin wrapper over a rich :class:`Console` for messages, tables and prompts."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def log(self, message: str, style: str = ""):
        """Logs a message to the console with an optional style."""
        self.console.log(message, style=style)

    def status(self, message: str):
        """A spinner shown while the wrapped block runs."""
        return self.console.status(message)

    def print_table(self, title: str, columns: List[str], rows: List[List[str]]):
        """Prints a formatted table to the console."""
        table = Table(
            title=title,
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
        )
        for col in columns:
            table.add_column(col)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)

    def confirm(self, question: str, default: bool = False) -> bool:
        return Confirm.ask(question, console=self.console, default=default)

    def ask(self, question: str) -> str:
        return Prompt.ask(question, console=self.console, default="", show_default=False)
