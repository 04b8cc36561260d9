"""Daily log files for the ``trindade`` logger tree.

Every module logs through ``logging.getLogger("trindade.<area>")``.
``configure_logging`` sends those records to ``<log_dir>/YYYY-MM-DD.log``
as lines of the form::

    [14:03:22] ERROR: Mail delivery failed {"to": ["ana@example.com"]}

Structured context goes in the ``context`` extra::

    logger.info("User created", extra={"context": {"id": 7}})
"""

import json
import logging
import re
import time
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

_LINE_RE = re.compile(r"^\[(\d{2}:\d{2}:\d{2})\] ([A-Z]+): (.*?)(?: (\{.*\}))?$")


class LineFormatter(logging.Formatter):
    """``[H:M:S] LEVEL: message {json-context}``; tracebacks follow on new lines."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = time.strftime("%H:%M:%S", time.localtime(record.created))
        line = f"[{stamp}] {record.levelname}: {record.getMessage()}"
        context = getattr(record, "context", None)
        if context:
            line += " " + json.dumps(context, ensure_ascii=False, default=str)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class DailyFileHandler(logging.Handler):
    """Append each record to the file named after the record's local date."""

    def __init__(self, log_dir: str | Path, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.setFormatter(LineFormatter())

    def path_for(self, day: date) -> Path:
        return self.log_dir / f"{day.isoformat()}.log"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            day = datetime.fromtimestamp(record.created).date()
            with self.path_for(day).open("a", encoding="utf-8") as fh:
                fh.write(self.format(record) + "\n")
        except Exception:  # noqa: BLE001
            self.handleError(record)


def configure_logging(log_dir: str | Path, level: str | int = "debug") -> DailyFileHandler:
    """Attach a ``DailyFileHandler`` to the ``trindade`` logger.

    Calling it again replaces the previous handler, so reconfiguring
    (tests, reloads) never duplicates lines.
    """
    root = logging.getLogger("trindade")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.DEBUG
    for existing in [h for h in root.handlers if isinstance(h, DailyFileHandler)]:
        root.removeHandler(existing)
        existing.close()
    handler = DailyFileHandler(log_dir)
    root.addHandler(handler)
    root.setLevel(level)
    return handler


def read_log_entries(log_dir: str | Path, day: date | str | None = None) -> list[dict[str, Any]]:
    """Parse one day's log file (today by default) back into entries.

    Lines that do not start a new entry, such as traceback lines, are
    appended to the previous entry's ``message``.
    """
    if day is None:
        day = date.today()
    name = day if isinstance(day, str) else day.isoformat()
    path = Path(log_dir) / f"{name}.log"
    if not path.exists():
        return []

    entries: list[dict[str, Any]] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        m = _LINE_RE.match(line)
        if m is None:
            if entries:
                entries[-1]["message"] += "\n" + line
            continue
        stamp, level, message, raw_context = m.groups()
        context: dict[str, Any] = {}
        if raw_context:
            try:
                context = json.loads(raw_context)
            except ValueError:
                message = f"{message} {raw_context}"
        entries.append({"time": stamp, "level": level, "message": message, "context": context})
    return entries


def clear_old_logs(log_dir: str | Path, days: int = 30) -> int:
    """Delete ``YYYY-MM-DD.log`` files older than *days*; return how many."""
    cutoff = date.today() - timedelta(days=days)
    removed = 0
    for path in Path(log_dir).glob("*.log"):
        try:
            day = date.fromisoformat(path.stem)
        except ValueError:
            continue
        if day < cutoff:
            path.unlink()
            removed += 1
    return removed
