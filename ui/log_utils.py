"""Shared logging utilities."""

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "relay.log"

SENSITIVE_MARKERS = ("key", "secret", "authorization", "cookie", "token")


def write_incoming_log(
    method: str,
    path: str,
    headers: dict[str, str],
    body: Any,
    *,
    secret_headers: Iterable[str] = (),
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single incoming request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "path": path,
        "headers": redact_headers(headers, secret_headers),
        "body": body,
    }
    return _write_json(log_root / "incoming", payload)


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path | None = None,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file = log_file or CLI_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a") as f:
        f.write(line)


def redact_headers(
    headers: dict[str, str],
    secret_headers: Iterable[str] = (),
) -> dict[str, str]:
    """Mask credential-bearing headers."""
    secrets = {name.lower() for name in secret_headers}
    redacted = {}
    for key, value in headers.items():
        key_lower = key.lower()
        if key_lower in secrets or any(marker in key_lower for marker in SENSITIVE_MARKERS):
            redacted[key] = mask(value)
        else:
            redacted[key] = value
    return redacted


def mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:4] + "..." + value[-2:]


def mask_url(url: str) -> str:
    """Hide userinfo in a URL such as the egress tunnel."""
    scheme, sep, rest = url.partition("://")
    authority, slash, path = rest.partition("/")
    if not sep or "@" not in authority:
        return url
    return f"{scheme}://***@{authority.rsplit('@', 1)[1]}{slash}{path}"


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
