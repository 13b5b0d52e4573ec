"""Utility functions for the setup assistant."""
import json
import os
import re
from pathlib import Path
from typing import Any, List, Optional, Union

import sh

from nodesetup.errors import CommandError, DownloadError, HTTPError

# curl exits with 22 when --fail is given and the server returns >= 400
CURL_HTTP_ERROR = 22
CURL_STATUS_RE = re.compile(r"returned error: (\d{3})")

_verbose = False


def file_exists(path: Union[str, Path]) -> bool:
    """Check if anything (file, directory or dangling symlink) exists at path."""
    return os.path.lexists(path)


def log_info(message: str) -> None:
    """Log an informational message."""
    print(f"[INFO] {message}")


def log_action(message: str) -> None:
    """Log an action being performed."""
    print(f"  -> {message}")


def log_debug(message: str) -> None:
    """Log a diagnostic message, only shown in verbose mode."""
    if _verbose:
        print(f"[DEBUG] {message}")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    global _verbose
    _verbose = verbose


def execute_binary(binary_path: Union[str, Path], args: List[str], timeout: Optional[int] = None) -> str:
    """Run a binary with the given arguments and return its stripped stdout."""
    log_debug(f"Executing {binary_path} {' '.join(args)}")
    try:
        command = sh.Command(str(binary_path))
        output = command(*args, _timeout=timeout)
    except sh.ErrorReturnCode as e:
        stderr = e.stderr.decode(errors="replace").strip()
        raise CommandError(f"{binary_path} {' '.join(args)} exited with {e.exit_code}: {stderr}") from e
    except sh.TimeoutException as e:
        raise CommandError(f"{binary_path} {' '.join(args)} timed out after {timeout}s") from e
    except (sh.CommandNotFound, OSError) as e:
        raise CommandError(f"cannot execute {binary_path}: {e}") from e
    return str(output).strip()


def http_status(stderr: str) -> Optional[int]:
    """HTTP status reported by curl --fail, if it names one."""
    match = CURL_STATUS_RE.search(stderr)
    return int(match.group(1)) if match else None


def _curl(args: List[str], url: str, timeout: int) -> str:
    try:
        return str(sh.curl("-fsSL", "--max-time", str(timeout), *args, url))
    except sh.ErrorReturnCode as e:
        stderr = e.stderr.decode(errors="replace").strip()
        if e.exit_code == CURL_HTTP_ERROR:
            raise HTTPError(f"{url}: {stderr}", status=http_status(stderr)) from e
        raise DownloadError(f"failed to fetch {url}: {stderr}") from e
    except sh.CommandNotFound as e:
        raise DownloadError("curl is required to download files") from e


def download_file(url: str, destination: Union[str, Path], timeout: int = 300) -> Path:
    """Download url into destination, creating parent directories."""
    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DownloadError(f"cannot create {destination.parent}: {e}") from e
    log_debug(f"Downloading {url} to {destination}")
    _curl(["-o", str(destination)], url, timeout)
    return destination


def fetch_json(url: str, timeout: int = 30) -> Any:
    """Fetch and decode a JSON document."""
    log_debug(f"Fetching {url}")
    body = _curl(["-H", "Accept: application/json"], url, timeout)
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise DownloadError(f"invalid JSON returned by {url}: {e}") from e
