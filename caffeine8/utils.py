import os
import time
from pathlib import Path

DEFAULT_STATUS_FILE = "/tmp/caffeine8.status"
DEFAULT_PID_FILE = "/tmp/caffeine8.pid"
DEFAULT_POLL_INTERVAL = 1.0


def get_status_file_path() -> Path:
    return Path(os.environ.get("CAFFEINE8_STATUS_FILE") or DEFAULT_STATUS_FILE)


def get_pid_file_path() -> Path:
    return Path(os.environ.get("CAFFEINE8_PID_FILE") or DEFAULT_PID_FILE)


def get_poll_interval() -> float:
    try:
        interval = float(os.environ["CAFFEINE8_POLL_INTERVAL"])
    except (KeyError, ValueError, TypeError):
        return DEFAULT_POLL_INTERVAL
    if interval <= 0:
        return DEFAULT_POLL_INTERVAL
    return interval


def is_pid_running(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except PermissionError:
        # exists, owned by someone else
        return True
    except OSError:
        return False
    else:
        return True


def wait_for_exit(pid: int, timeout: float, interval: float = 0.1) -> bool:
    deadline = time.monotonic() + timeout
    while is_pid_running(pid):
        if time.monotonic() >= deadline:
            return False
        time.sleep(interval)
    return True


def read_pid_file(path: Path) -> int | None:
    try:
        return int(Path(path).read_text().strip())
    except (OSError, ValueError):
        return None


def write_pid_file(path: Path, pid: int) -> None:
    Path(path).write_text(str(pid))


def delete_pid_file(path: Path) -> bool:
    try:
        Path(path).unlink()
    except FileNotFoundError:
        return False
    return True


def check_existing_instance(path: Path) -> int | None:
    """Return the PID recorded in ``path`` if that process is still alive."""
    pid = read_pid_file(path)
    if pid is not None and is_pid_running(pid):
        return pid
    return None
