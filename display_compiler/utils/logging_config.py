"""Logging setup for the schematic builder.

Every record can carry build context: the layout being composed and the
tile being emitted.  The composer sets these with :func:`log_context`, so
a placement warning reads::

    2026-10-18T13:45:12.345Z | WARNING  | layout=2x2 tile=2x2_1c0 | No free processor cell ...

or, with ``json=True``::

    {"t": "2026-10-18T13:45:12.345Z", "lvl": "WARNING", "layout": "2x2", ...}

Public API:
    setup_logging(log_level="INFO", log_file=None, json=False)
    push_context(layout="2x2") / pop_context(["layout"]) / get_context()
    log_context(tile="2x2_1c0")      # context manager
    install_excepthook()

Context lives in a ContextVar, so concurrent builds in separate threads
or tasks do not see each other's fields.  Calling setup_logging() again
replaces the handlers it installed instead of stacking new ones.
"""

import contextvars
import json as _json
import logging
import os
import sys
import warnings
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

_context_var: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    'display_compiler_log_context', default={}
)

# Handlers installed by setup_logging(), removed on the next call
_installed: List[logging.Handler] = []

_LEVEL_COLORS = {
    'DEBUG': '\033[36m',
    'INFO': '\033[32m',
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[35m',
}
_RESET = '\033[0m'


class ContextFormatter(logging.Formatter):
    """Render records as ``ts | LEVEL | k=v ... | message`` or JSON lines.

    Parameters
    ----------
    fmt_mode : str
        ``"human"`` or ``"json"``.
    use_color : bool
        Color the level name; only honoured when stderr is a terminal.
    """

    def __init__(self, fmt_mode: str = "human", use_color: bool = True):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"Unknown log format '{fmt_mode}'. Use 'human' or 'json'.")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        context = _context_var.get()
        if self.fmt_mode == "json":
            return self._json_line(record, ts, context)
        return self._human_line(record, ts, context)

    def _json_line(self, record, ts, context) -> str:
        entry = {
            't': ts.isoformat(timespec='milliseconds'),
            'lvl': record.levelname,
            'name': record.name,
            'pid': os.getpid(),
            **context,
            'msg': record.getMessage(),
        }
        if record.exc_info:
            entry['exc'] = self.formatException(record.exc_info)
        return _json.dumps(entry, default=str)

    def _human_line(self, record, ts, context) -> str:
        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{_LEVEL_COLORS.get(record.levelname, '')}{level}{_RESET}"

        fields = [ts.strftime('%Y-%m-%dT%H:%M:%S.') + f"{ts.microsecond // 1000:03d}Z", level]
        if context:
            fields.append(' '.join(f"{k}={v}" for k, v in context.items()))
        fields.append(record.getMessage())

        line = ' | '.join(fields)
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> List[logging.Handler]:
    """Configure the root logger for a build.

    Parameters
    ----------
    log_level : str
        Root level name, e.g. ``"INFO"`` or ``"DEBUG"``.
    log_file : str, optional
        Also append records to this file (never colored).
    json : bool
        JSON lines instead of the human format, for both handlers.
    color : bool
        Color level names on a terminal.
    capture_warnings : bool
        Route ``warnings.warn`` through logging.
    quiet_libs : list[str], optional
        Loggers held at WARNING, e.g. ``["PIL"]``.
    context : dict, optional
        Fields to push before the first record.

    Returns
    -------
    list[logging.Handler]
        Handlers installed by this call.
    """
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    root.setLevel(getattr(logging, log_level.upper()))
    fmt_mode = "json" if json else "human"

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ContextFormatter(fmt_mode, use_color=color))
    _installed.append(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setFormatter(ContextFormatter(fmt_mode, use_color=False))
        _installed.append(file_handler)

    for handler in _installed:
        root.addHandler(handler)

    for lib in quiet_libs or []:
        logging.getLogger(lib).setLevel(logging.WARNING)
    if capture_warnings:
        route_warnings()
    if context:
        push_context(**context)
    return list(_installed)


def push_context(**fields) -> None:
    """Attach *fields* to every following record in this context."""
    _context_var.set({**_context_var.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the given fields, or all of them when *keys* is None."""
    if keys is None:
        _context_var.set({})
        return
    _context_var.set({k: v for k, v in _context_var.get().items() if k not in keys})


def get_context() -> Dict[str, Any]:
    return dict(_context_var.get())


@contextmanager
def log_context(**fields) -> Iterator[None]:
    """Push *fields* for the duration of a ``with`` block.

    On exit the context is restored exactly, including any outer values
    the block shadowed.
    """
    token = _context_var.set({**_context_var.get(), **fields})
    try:
        yield
    finally:
        _context_var.reset(token)


def install_excepthook() -> None:
    """Log uncaught exceptions (Ctrl+C excepted) at CRITICAL before exit."""
    def _log_uncaught(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logging.getLogger(__name__).critical(
            "Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback),
        )

    sys.excepthook = _log_uncaught


def route_warnings() -> None:
    """Send Python warnings to the ``py.warnings`` logger."""
    logging.captureWarnings(True)
    logging.getLogger('py.warnings').setLevel(logging.WARNING)
    warnings.simplefilter("default")
