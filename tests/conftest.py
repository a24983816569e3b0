import stat
from pathlib import Path
from typing import Callable

import pytest

from gastown_mail.config import clear_settings_cache


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point the gateway at a throwaway Gas Town directory and reset caches."""
    gastown_root: Path = tmp_path / "gt"
    gastown_root.mkdir()
    bin_dir: Path = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("GASTOWN_PATH", str(gastown_root))
    monkeypatch.setenv("GT_BIN_DIR", str(bin_dir))
    monkeypatch.setenv("GT_BIN", "gt")
    monkeypatch.setenv("MAIL_COMMAND_TIMEOUT_MS", "5000")
    monkeypatch.setenv("HTTP_HOST", "127.0.0.1")
    monkeypatch.setenv("HTTP_PORT", "3001")
    monkeypatch.setenv("APP_ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_RICH_ENABLED", "false")
    clear_settings_cache()
    try:
        yield {"gastown_root": gastown_root, "bin_dir": bin_dir}
    finally:
        clear_settings_cache()


@pytest.fixture
def fake_gt(isolated_env) -> Callable[..., Path]:
    """Install a shell-script ``gt`` into the local bin dir.

    The script records its argv (one per line) and working directory under the
    Gas Town root, prints ``stdout`` and exits with ``exit_code``.
    """
    gastown_root: Path = isolated_env["gastown_root"]
    bin_dir: Path = isolated_env["bin_dir"]

    def _install(stdout: str = "", exit_code: int = 0, sleep_seconds: float = 0) -> Path:
        (gastown_root / "stdout.txt").write_text(stdout, encoding="utf-8")
        lines = [
            "#!/bin/sh",
            'printf \'%s\\n\' "$@" > "$GASTOWN_PATH/args.txt"',
            'pwd > "$GASTOWN_PATH/cwd.txt"',
        ]
        if sleep_seconds:
            lines.append(f"exec sleep {sleep_seconds}")
        lines.extend(['cat "$GASTOWN_PATH/stdout.txt"', f"exit {exit_code}"])
        script = bin_dir / "gt"
        script.write_text("\n".join(lines) + "\n", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _install


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Settings are lru-cached; never let one test's environment leak into the next."""
    yield
    clear_settings_cache()
