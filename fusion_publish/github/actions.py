"""GitHub Actions runner boundary.

Inputs arrive as ``INPUT_<NAME>`` environment variables and outputs are
appended to the file named by ``GITHUB_OUTPUT``. Log lines use workflow
commands (``::warning::`` etc.) so the runner annotates them.

Only this module talks to the runner. Everything behind it takes plain
arguments.
"""

from __future__ import annotations

import json
import os
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..infra.errors import NotConfiguredError, ValidationFailure


ALLOW_LOCAL_ENV_VAR = "FUSION_PUBLISH_ALLOW_LOCAL"
_TRUTHY = {"1", "true", "yes", "on"}

OutputValue = Union[str, bool, int, None]


def coerce_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if not s:
        return default
    return s in _TRUTHY


def _input_env_names(name: str) -> tuple:
    upper = name.replace(" ", "_").upper()
    return (f"INPUT_{upper}", f"INPUT_{upper.replace('-', '_')}")


def get_input(name: str, required: bool = False) -> str:
    """Read an action input, trimmed. Missing inputs read as "".

    Hyphenated names are also looked up with underscores, since some runners
    export ``INPUT_FUSION_TOKEN`` instead of ``INPUT_FUSION-TOKEN``.
    """
    value = ""
    for env_name in _input_env_names(name):
        value = str(os.environ.get(env_name, "") or "").strip()
        if value:
            break
    if required and not value:
        raise ValidationFailure(f"Input '{name}' is required.")
    return value


def format_output_value(value: OutputValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def set_output(name: str, value: OutputValue) -> None:
    """Record a step output.

    Multi-line values use the heredoc form with a random delimiter. Without
    GITHUB_OUTPUT (local runs) the pair is echoed instead.
    """
    text = format_output_value(value)
    out_path = str(os.environ.get("GITHUB_OUTPUT", "") or "").strip()
    if not out_path:
        print(f"[output] {name}={text}")
        return

    if "\n" in text or "\r" in text:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        record = f"{name}<<{delimiter}\n{text}\n{delimiter}\n"
    else:
        record = f"{name}={text}\n"

    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a", encoding="utf-8") as f:
        f.write(record)


def _escape_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def info(message: str) -> None:
    print(message)
    sys.stdout.flush()


def debug(message: str) -> None:
    print(f"::debug::{_escape_data(message)}")


def warning(message: str) -> None:
    print(f"::warning::{_escape_data(message)}")


def error(message: str) -> None:
    print(f"::error::{_escape_data(message)}")


def set_failed(message: str) -> int:
    """Report a step failure and return the exit code for it."""
    error(message)
    return 1


def read_event_payload() -> Dict[str, Any]:
    """Parse the webhook payload at GITHUB_EVENT_PATH; {} when unavailable."""
    p = str(os.environ.get("GITHUB_EVENT_PATH", "") or "").strip()
    if not p or not Path(p).is_file():
        return {}
    try:
        data = json.loads(Path(p).read_text(encoding="utf-8"))
    except ValueError as e:
        warning(f"Could not parse GITHUB_EVENT_PATH payload: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def repository_slug() -> Optional[str]:
    repo = str(os.environ.get("GITHUB_REPOSITORY", "") or "").strip()
    if repo and "/" in repo:
        return repo
    return None


def in_runner() -> bool:
    return str(os.environ.get("GITHUB_ACTIONS", "") or "").strip().lower() == "true"


def ensure_runner_context() -> None:
    """Refuse to run outside GitHub Actions unless FUSION_PUBLISH_ALLOW_LOCAL is set."""
    if in_runner() or coerce_bool(os.environ.get(ALLOW_LOCAL_ENV_VAR), default=False):
        return
    raise NotConfiguredError(
        "Not running inside GitHub Actions (GITHUB_ACTIONS != 'true'). "
        f"Set {ALLOW_LOCAL_ENV_VAR}=1 to run the publish steps locally."
    )
