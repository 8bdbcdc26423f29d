# somnia_auto/report.py
"""
Two progress sinks shared by every routine.

add_log      detailed, append-only log lines
update_panel condensed status lines for a UI panel

Both take a single string with blessed-style color tags ({green-fg}...{/green-fg}).
A missing callback falls back to the package logger with the tags stripped.
"""
import logging
import re
from typing import Callable, Optional

from .util import get_logger

Sink = Callable[[str], None]

_TAG_RE = re.compile(r"\{/?[a-z]+(?:-[a-z]+)*\}")

OK, WARN, ERR, INFO = "✔", "⚠", "✖", "ℹ"

_COLOR = {OK: "green-fg", WARN: "yellow-fg", ERR: "red-fg", INFO: "cyan-fg"}


def strip_markup(msg: str) -> str:
    return _TAG_RE.sub("", msg)


def _level_of(msg: str) -> int:
    plain = strip_markup(msg).lstrip()
    if plain.startswith(ERR):
        return logging.ERROR
    if plain.startswith(WARN):
        return logging.WARNING
    return logging.INFO


class Reporter:
    def __init__(self, add_log: Optional[Sink] = None, update_panel: Optional[Sink] = None, log=None):
        self._add_log = add_log if callable(add_log) else None
        self._update_panel = update_panel if callable(update_panel) else None
        self._log = log or get_logger()

    def _console(self, msg: str):
        text = strip_markup(msg).strip("\n")
        if text.strip():
            self._log.log(_level_of(msg), text.strip())

    def log(self, msg: str):
        if self._add_log:
            self._add_log(msg)
        else:
            self._console(msg)

    def panel(self, msg: str):
        if self._update_panel:
            self._update_panel(msg)
        else:
            self._console(msg)

    def emit(self, glyph: str, msg: str, panel: Optional[str] = None):
        """Log `msg` with a glyph; `panel`, when given, goes to the panel sink."""
        color = _COLOR[glyph]
        self.log(f"{{{color}}}{glyph} {msg}{{/{color}}}")
        if panel:
            self.panel(f"{{{color}}}{glyph} {panel}{{/{color}}}")

    def info(self, msg: str, panel: Optional[str] = None):
        self.emit(INFO, msg, panel)

    def success(self, msg: str, panel: Optional[str] = None):
        self.emit(OK, msg, panel)

    def warn(self, msg: str, panel: Optional[str] = None):
        self.emit(WARN, msg, panel)

    def error(self, msg: str, panel: Optional[str] = None):
        self.emit(ERR, msg, panel)

    def banner(self, title: str, color: str = "cyan-fg"):
        self.panel(f"{{{color}}}\n {title} \n{{/{color}}}")
        self.log(f"{{{color}}}--- {title} ---{{/{color}}}")
