"""Backtrace cleaning for captured exceptions.

A context records the frames that led to a raised exception so a failed
run can be diagnosed from its snapshot alone.  Raw tracebacks are noisy;
``BacktraceCleaner`` rewrites each frame with *filters* (e.g. strip the
project root) and drops library frames with *silencers*.

Frames are rendered one per line, innermost first::

    /app/billing/actions.py:42 in perform
    /app/billing/organizers.py:17 in call

Examples:
    >>> cleaner = BacktraceCleaner()
    >>> cleaner.add_filter(lambda line: line.replace("/app/", ""))
    >>> cleaner.clean_backtrace(["/app/x.py:1 in f", "/venv/site-packages/y.py:2 in g"])
    ['x.py:1 in f']

Tags:
    flowlight, backtrace, diagnostics, error-capture

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re
import traceback
from collections.abc import Callable, Iterable
from enum import Enum

from flowlight.core.settings import get_settings

Filter = Callable[[str], str]
Silencer = Callable[[str], bool]

BacktraceInput = BaseException | str | Iterable[object]

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class BacktraceKind(str, Enum):
    """Which frames ``clean_backtrace`` returns."""

    SILENT = "silent"  # hide silenced frames
    NOISE = "noise"    # only silenced frames
    ALL = "all"        # every frame, filters applied


def format_frames(error: BaseException) -> list[str]:
    """One ``path:line in function`` entry per frame, innermost first."""
    frames = traceback.extract_tb(error.__traceback__)
    return [f"{frame.filename}:{frame.lineno} in {frame.name}" for frame in reversed(frames)]


class BacktraceCleaner:
    """Filters and silencers applied to backtrace lines.

    A new cleaner silences frames containing any of the configured
    ``backtrace_silence_patterns`` (third-party packages by default).
    """

    def __init__(self, silence_patterns: Iterable[str] | None = None) -> None:
        self._filters: list[Filter] = []
        self._silencers: list[Silencer] = []

        patterns = list(
            silence_patterns
            if silence_patterns is not None
            else get_settings().backtrace_silence_patterns
        )
        if patterns:
            self.add_silencer(lambda line: any(p in line for p in patterns))

    def add_filter(self, fn: Filter) -> BacktraceCleaner:
        self._filters.append(fn)
        return self

    def add_silencer(self, fn: Silencer) -> BacktraceCleaner:
        self._silencers.append(fn)
        return self

    def remove_filters(self) -> BacktraceCleaner:
        self._filters = []
        return self

    def remove_silencers(self) -> BacktraceCleaner:
        self._silencers = []
        return self

    def clean_backtrace(
        self,
        backtrace: BacktraceInput,
        kind: BacktraceKind | str = BacktraceKind.SILENT,
    ) -> list[str]:
        """Filter every line, then keep lines according to ``kind``.

        Unknown kinds behave like ``ALL``.
        """
        lines = [self._apply_filters(line) for line in _normalize(backtrace)]
        kind = _coerce_kind(kind)
        if kind is BacktraceKind.SILENT:
            return [line for line in lines if not self._is_silenced(line)]
        if kind is BacktraceKind.NOISE:
            return [line for line in lines if self._is_silenced(line)]
        return lines

    def clean_frame(
        self,
        frame: str,
        kind: BacktraceKind | str = BacktraceKind.SILENT,
    ) -> str | None:
        """Filter one frame; ``None`` when ``kind`` would drop it."""
        reduced = self._apply_filters(frame)
        kind = _coerce_kind(kind)
        if kind is BacktraceKind.SILENT:
            return None if self._is_silenced(reduced) else reduced
        if kind is BacktraceKind.NOISE:
            return reduced if self._is_silenced(reduced) else None
        return reduced

    @classmethod
    def clean(
        cls,
        backtrace: BacktraceInput,
        configure: Callable[[BacktraceCleaner], object] | None = None,
        kind: BacktraceKind | str = BacktraceKind.SILENT,
    ) -> list[str]:
        """One-shot helper: build a cleaner, let ``configure`` adjust it, clean."""
        cleaner = cls()
        if configure is not None:
            configure(cleaner)
        return cleaner.clean_backtrace(backtrace, kind)

    def _apply_filters(self, line: str) -> str:
        for fn in self._filters:
            line = str(fn(line))
        return line

    def _is_silenced(self, line: str) -> bool:
        return any(bool(fn(line)) for fn in self._silencers)


def _coerce_kind(kind: BacktraceKind | str) -> BacktraceKind:
    try:
        return BacktraceKind(kind)
    except ValueError:
        return BacktraceKind.ALL


def _normalize(backtrace: BacktraceInput) -> list[str]:
    if isinstance(backtrace, BaseException):
        lines: Iterable[object] = format_frames(backtrace)
    elif isinstance(backtrace, str):
        lines = _LINE_BREAK.split(backtrace)
    else:
        lines = backtrace
    return [text for text in (str(line) for line in lines) if text != ""]


__all__ = ["BacktraceCleaner", "BacktraceKind", "format_frames"]
