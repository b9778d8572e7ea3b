"""
Execution trace recording.

Each executed statement can be recorded as a ``TraceEntry`` holding the
display query, its wall-clock duration and a description of the application
code that issued it.
"""

import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from fluent_mysql.utils.logging import get_logger

logger = get_logger(__name__)

PACKAGE_ROOT = str(Path(__file__).resolve().parents[1]) + os.sep


@dataclass(frozen=True)
class TraceEntry:
    query: str
    duration: float
    caller: str


class TraceRecorder:
    """Append-only list of executed statements.

    Args:
        enabled: Record entries when True
        strip_prefix: Path prefix removed from caller file names
    """

    def __init__(self, enabled: bool = True, strip_prefix: Optional[str] = None):
        self.enabled = enabled
        self.strip_prefix = strip_prefix or ""
        self.entries: List[TraceEntry] = []
        self._started: Optional[float] = None
        self._label: Optional[str] = None

    def configure(self, enabled: bool, strip_prefix: Optional[str] = None) -> None:
        self.enabled = enabled
        self.strip_prefix = strip_prefix or ""

    def label(self, caller: str) -> None:
        """Use ``caller`` instead of the stack-derived description for the next entry."""
        self._label = caller

    def start(self) -> None:
        self._started = time.perf_counter()

    def finish(self, query: Optional[str]) -> Optional[TraceEntry]:
        """Record the statement started by ``start``; no-op when disabled or not started."""
        started, self._started = self._started, None
        label, self._label = self._label, None
        if not self.enabled or started is None:
            return None

        entry = TraceEntry(
            query=query or "",
            duration=time.perf_counter() - started,
            caller=label or self.describe_caller(),
        )
        self.entries.append(entry)
        logger.debug(
            "query.executed",
            query=entry.query,
            duration=entry.duration,
            caller=entry.caller,
        )
        return entry

    def describe_caller(self) -> str:
        """Describe the first stack frame outside this package.

        Format: ``Database.<method>() >> file "<path>" line #<n>``, where
        ``<method>`` is the package entry point the application called.
        """
        frame = sys._getframe(1)
        method = "<unknown>"
        while frame is not None and frame.f_code.co_filename.startswith(PACKAGE_ROOT):
            method = frame.f_code.co_name
            frame = frame.f_back
        if frame is None:
            return f"Database.{method}()"

        filename = frame.f_code.co_filename
        if self.strip_prefix:
            filename = filename.replace(self.strip_prefix, "")
        return f'Database.{method}() >> file "{filename}" line #{frame.f_lineno}'

    def clear(self) -> None:
        self.entries.clear()
