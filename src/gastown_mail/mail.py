"""Gateway to the Gas Town ``gt mail`` command-line tool.

Identity resolution, the ``gt`` subprocess runner, and the inbox/send
operations built on top of it. Commands are always executed as argument
vectors (never through a shell), so identities and message text are passed
to ``gt`` verbatim.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from typing import Optional

import structlog

from .config import MailSettings, Settings, get_settings
from .models import Mail

__all__ = [
    "GtCommandError",
    "GtCommandTimeout",
    "build_gt_env",
    "build_inbox_command",
    "build_send_command",
    "fetch_inbox",
    "parse_inbox_output",
    "resolve_gt_executable",
    "resolve_identity",
    "run_gt",
    "send_mail",
]

logger = structlog.get_logger("mail")


class GtCommandError(RuntimeError):
    """Raised when a ``gt`` invocation exits non-zero."""

    def __init__(self, args: Sequence[str], returncode: Optional[int], stderr: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"gt {' '.join(self.command[1:])} failed: {detail}")


class GtCommandTimeout(GtCommandError):
    """Raised when a ``gt`` invocation exceeds the configured timeout."""

    def __init__(self, args: Sequence[str], timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(args, None, f"timed out after {timeout_seconds:g}s")


def resolve_identity(agent: Optional[str], rig: Optional[str] = None) -> Optional[str]:
    """Return the mailbox identity for ``agent``, qualified by ``rig`` when needed.

    An agent that already contains ``/`` is treated as fully qualified and the
    rig is ignored.
    """
    if not agent:
        return None
    if "/" in agent:
        return agent
    if rig:
        return f"{rig}/{agent}"
    return agent


def build_gt_env(mail_settings: MailSettings, base_env: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Environment for ``gt``: local bin dir first on PATH and GASTOWN_PATH set."""
    env = dict(os.environ if base_env is None else base_env)
    current_path = env.get("PATH", "")
    bin_dir = str(mail_settings.bin_path)
    env["PATH"] = f"{bin_dir}{os.pathsep}{current_path}" if current_path else bin_dir
    env["GASTOWN_PATH"] = str(mail_settings.base_path)
    return env


def resolve_gt_executable(mail_settings: MailSettings, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Locate the ``gt`` binary on the augmented PATH, or None if it is missing."""
    if env is None:
        env = build_gt_env(mail_settings)
    return shutil.which(mail_settings.gt_bin, path=env.get("PATH"))


def run_gt(args: Sequence[str], settings: Optional[Settings] = None) -> str:
    """Run ``gt <args>`` synchronously and return its stdout.

    Raises ``GtCommandTimeout`` when the timeout elapses, ``GtCommandError`` on
    a non-zero exit, and ``OSError`` when the process cannot be started (for
    example a missing binary or base directory).
    """
    settings = settings or get_settings()
    mail_settings = settings.mail
    env = build_gt_env(mail_settings)
    executable = resolve_gt_executable(mail_settings, env) or mail_settings.gt_bin
    command = [executable, *args]
    try:
        result = subprocess.run(
            command,
            cwd=str(mail_settings.base_path),
            env=env,
            text=True,
            capture_output=True,
            timeout=mail_settings.timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise GtCommandTimeout(command, mail_settings.timeout_seconds) from exc
    if result.returncode != 0:
        raise GtCommandError(command, result.returncode, result.stderr or "")
    return result.stdout or ""


def build_inbox_command(identity: Optional[str]) -> list[str]:
    command = ["mail", "inbox"]
    if identity is not None:
        command.extend(["--identity", identity])
    command.append("--json")
    return command


def build_send_command(to: str, subject: str, body: str) -> list[str]:
    # "--" keeps a recipient that starts with "-" from being parsed as a gt option.
    return ["mail", "send", "-s", subject, "-m", body, "--", to]


def parse_inbox_output(output: str) -> list[Mail]:
    """Convert ``gt mail inbox --json`` output into ``Mail`` records.

    Empty output and the literal ``null`` mean an empty inbox. Anything that is
    not a JSON array of objects raises ``ValueError``.
    """
    text = (output or "").strip()
    if not text or text == "null":
        return []
    try:
        payload = json.loads(text)
    except RecursionError as exc:
        raise ValueError("gt mail inbox output is nested too deeply to decode") from exc
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON array from gt mail inbox, got {type(payload).__name__}")
    messages: list[Mail] = []
    for item in payload:
        if not isinstance(item, Mapping):
            raise ValueError(f"expected mail objects, got {type(item).__name__}")
        messages.append(Mail.from_raw(item))
    return messages


def fetch_inbox(identity: Optional[str] = None, settings: Optional[Settings] = None) -> list[Mail]:
    """List the inbox for ``identity`` (or the default mailbox).

    Every failure collapses to an empty list; the cause is only logged.
    """
    command = build_inbox_command(identity)
    try:
        output = run_gt(command, settings)
        return parse_inbox_output(output)
    except (GtCommandError, OSError, ValueError) as exc:
        logger.warning("mail.inbox_failed", identity=identity, error=str(exc), error_type=type(exc).__name__)
        return []


def send_mail(to: str, subject: str, body: str, settings: Optional[Settings] = None) -> bool:
    """Send a message through ``gt mail send``; True only on a clean exit."""
    try:
        run_gt(build_send_command(to, subject, body), settings)
    except (GtCommandError, OSError) as exc:
        logger.warning("mail.send_failed", to=to, error=str(exc), error_type=type(exc).__name__)
        return False
    logger.info("mail.sent", to=to, subject=subject)
    return True
