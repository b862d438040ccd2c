"""Line-oriented status file shared with external viewers.

The daemon is the only writer; viewers poll the file read-only. Each publish
truncates and rewrites the whole record::

    pid=1234
    active=1
    debug=0
    message=Inhibitors active (screen saver, idle, sleep).
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "TRUE")


@dataclass
class StatusRecord:
    pid: int
    active: bool
    debug: bool
    message: str

    def serialize(self) -> str:
        return (
            f"pid={self.pid}\n"
            f"active={int(self.active)}\n"
            f"debug={int(self.debug)}\n"
            f"message={sanitize_message(self.message)}\n"
        )


def sanitize_message(message: str) -> str:
    return message.replace("\n", " ").replace("\r", " ")


class StatusPublisher:
    def __init__(self, path: Path, debug: bool = False) -> None:
        self.path = Path(path)
        self.debug = debug

    def publish(self, active: bool, message: str) -> None:
        record = StatusRecord(os.getpid(), active, self.debug, message)
        try:
            with open(self.path, "w", encoding="utf-8", errors="replace") as f:
                f.write(record.serialize())
        except OSError as e:
            logger.debug("Unable to open status file for writing: %s (%s)", self.path, e)


def read_status(path: Path) -> StatusRecord | None:
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None

    record = StatusRecord(pid=-1, active=False, debug=False, message="")
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        if key == "active":
            record.active = value in TRUE_VALUES
        elif key == "debug":
            record.debug = value in TRUE_VALUES
        elif key == "pid":
            if value.strip().isdigit():
                record.pid = int(value)
        elif key == "message":
            record.message = value

    if not record.message:
        record.message = "Status file present but empty."
    return record
