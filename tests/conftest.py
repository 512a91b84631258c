"""Pytest configuration and fixtures."""

import gzip
import os
import shutil
import tempfile
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest

from dumpkeeper.artifacts.naming import build_filename
from dumpkeeper.config import BackupConfig, DatabaseConfig, NotificationConfig, RetentionConfig, Settings
from dumpkeeper.process.runner import ProcessOutput, ProcessRunner

CONFIG_ENV_VARS = (
    "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD",
    "BACKUP_DIR", "BACKUP_PREFIX", "BACKUP_COMPRESSION", "BACKUP_COMPRESSION_LEVEL",
    "BACKUP_DUMP_COMMAND", "BACKUP_MAX_OUTPUT_MB", "BACKUP_LOCK",
    "RETENTION_DAILY", "RETENTION_WEEKLY", "RETENTION_MONTHLY", "RETENTION_POLICY",
    "NOTIFY_ENABLED", "NOTIFY_CHANNEL", "ADMIN_EMAIL",
    "SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASSWORD", "SMTP_USE_TLS", "SMTP_FROM",
    "NOTIFY_WEBHOOK_URL",
)

FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeRunner(ProcessRunner):
    """
    In-memory stand-in for external tools.

    pg_dump writes `dump_bytes` to its -f target; gzip compresses its
    argument like gzip(1). Set `returncode`/`output` to simulate failure,
    `partial_bytes` to leave a half-written file behind on failure.
    """

    def __init__(self):
        self.calls: list[tuple[list[str], dict[str, str]]] = []
        self.dump_bytes = b"PGDMP" + b"\x00" * 2048
        self.returncode = 0
        self.output = "pg_dump: dumping contents of table public.orders"
        self.partial_bytes: bytes | None = None
        self.gzip_returncode = 0
        self.handler: Callable[[list[str], dict[str, str]], ProcessOutput] | None = None

    def run(self, command: Sequence[str], env: Mapping[str, str] | None = None) -> ProcessOutput:
        command = list(command)
        env = dict(env or {})
        self.calls.append((command, env))

        if self.handler is not None:
            return self.handler(command, env)
        if command[0] == "gzip":
            return self._gzip(command)
        return self._dump(command)

    def _dump(self, command: list[str]) -> ProcessOutput:
        target = Path(command[command.index("-f") + 1])
        if self.returncode != 0:
            if self.partial_bytes is not None:
                target.write_bytes(self.partial_bytes)
            return ProcessOutput(self.returncode, self.output)
        target.write_bytes(self.dump_bytes)
        return ProcessOutput(0, self.output)

    def _gzip(self, command: list[str]) -> ProcessOutput:
        if self.gzip_returncode != 0:
            return ProcessOutput(self.gzip_returncode, "gzip: write error")
        source = Path(command[-1])
        target = source.with_name(source.name + ".gz")
        with open(source, "rb") as f_in, gzip.open(target, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)
        shutil.copystat(source, target)
        source.unlink()
        return ProcessOutput(0, "")

    @property
    def commands(self) -> list[list[str]]:
        return [command for command, _ in self.calls]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove configuration variables inherited from the host environment."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def backup_dir(temp_dir: Path) -> Path:
    """Existing, empty backup directory."""
    directory = temp_dir / "backups"
    directory.mkdir()
    return directory


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def database() -> DatabaseConfig:
    return DatabaseConfig(host="db.internal", port=5433, name="shop", user="backup", password="s3cret")


@pytest.fixture
def settings(backup_dir: Path, database: DatabaseConfig) -> Settings:
    """Settings pointing at the temporary backup directory."""
    return Settings(
        database=database,
        backup=BackupConfig(directory=backup_dir),
        retention=RetentionConfig(),
        notifications=NotificationConfig(),
    )


@pytest.fixture
def make_artifact(backup_dir: Path) -> Callable[..., Path]:
    """
    Create an artifact file aged `age` relative to FIXED_NOW.

    The name encodes the same instant as the mtime.
    """

    def _make(
        age: timedelta,
        directory: Path | None = None,
        prefix: str = "backup",
        compressed: bool = True,
        content: bytes = b"dump",
    ) -> Path:
        when = FIXED_NOW - age
        name = build_filename(prefix, "dump", when)
        if compressed:
            name += ".gz"
        path = (directory or backup_dir) / name
        path.write_bytes(content)
        timestamp = when.timestamp()
        os.utime(path, (timestamp, timestamp))
        return path

    return _make
