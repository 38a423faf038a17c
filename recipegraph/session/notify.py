"""Timer expiry alerts.

A notifier is any callable taking the step id whose timer just ran out. The
session calls it once per expiry, outside its lock.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from rich.console import Console

from recipegraph.graph.model import StepGraph

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


class LogNotifier:
    def __init__(self, graph: Optional[StepGraph] = None):
        self.graph = graph

    def __call__(self, step_id: str) -> None:
        label = self.graph.label(step_id) if self.graph is not None and step_id in self.graph else step_id
        logger.info("Timer finished | step=%s (%s)", step_id, label)


class ConsoleNotifier:
    """Prints a highlighted message and rings the terminal bell."""

    def __init__(self, graph: StepGraph, console: Optional[Console] = None, bell: bool = True):
        self.graph = graph
        self.console = console or Console()
        self.bell = bell

    def __call__(self, step_id: str) -> None:
        step = self.graph.step(step_id)
        if self.bell:
            self.console.bell()
        self.console.print(
            f"[bold green]Timer done:[/bold green] {self.graph.label(step_id)} - {step.text}"
        )
