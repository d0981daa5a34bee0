"""Interactive choice between equally plausible candidates.

The resolver never prompts on its own. When several candidates survive and
interactive mode is on, it hands the candidate table to an injected chooser
and takes back a 1-based row number, or ``None`` when nothing was chosen.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Protocol

import polars as pl

logger = logging.getLogger(__name__)


class InteractiveChooser(Protocol):
    """Anything that can pick one row of a candidate table."""

    def choose(self, name: str, table: pl.DataFrame) -> Optional[int]:
        """Return a 1-based row number, or ``None`` to decline."""
        ...


def parse_choice(answer: Optional[str], n_rows: int) -> Optional[int]:
    """Turn a typed answer into a row number.

    Anything that is not an integer in ``1..n_rows`` is a refusal.
    """
    if answer is None:
        return None
    answer = answer.strip()
    if not answer.isdecimal():
        return None
    choice = int(answer)
    if 1 <= choice <= n_rows:
        return choice
    return None


class ConsoleChooser:
    """Prints the candidate table and reads a row number from the console."""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        print_func: Callable[..., None] = print,
    ):
        self.input_func = input_func
        self.print_func = print_func

    def choose(self, name: str, table: pl.DataFrame) -> Optional[int]:
        self.print_func(f"\nMore than one candidate found for '{name}':")
        self.print_func(table.with_row_index("row", offset=1))
        try:
            answer = self.input_func("Enter rownumber of taxon (other inputs will return 'NA'):\n")
        except EOFError:
            logger.debug(f"No input available to choose a candidate for '{name}'")
            return None
        choice = parse_choice(answer, table.height)
        if choice is None:
            self.print_func("Input accepted, took taxon 'NA'.\n")
        else:
            self.print_func(f"Input accepted, took row {choice}.\n")
        return choice


class ScriptedChooser:
    """Answers from a prepared script, keyed by name or consumed in order.

    Every call is recorded in ``calls`` as ``(name, table)``.
    """

    def __init__(
        self,
        answers: Optional[Iterable[Optional[int]]] = None,
        by_name: Optional[Dict[str, Optional[int]]] = None,
    ):
        self._answers: List[Optional[int]] = list(answers or [])
        self.by_name = dict(by_name or {})
        self.calls: List[tuple] = []

    def choose(self, name: str, table: pl.DataFrame) -> Optional[int]:
        self.calls.append((name, table))
        if name in self.by_name:
            return self.by_name[name]
        if self._answers:
            return self._answers.pop(0)
        return None


class DeclineChooser:
    """Always declines."""

    def choose(self, name: str, table: pl.DataFrame) -> Optional[int]:
        return None
