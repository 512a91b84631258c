"""Tests for the dump producer."""

import errno
from pathlib import Path
from unittest.mock import patch

import pytest

from dumpkeeper.artifacts.producer import DumpProducer, classify_failure
from dumpkeeper.config import BackupConfig, DatabaseConfig
from dumpkeeper.core.exceptions import DumpError, ProcessError
from dumpkeeper.process.runner import ProcessOutput

from conftest import FIXED_NOW


@pytest.fixture
def producer(fake_runner, backup_dir: Path) -> DumpProducer:
    return DumpProducer(fake_runner, BackupConfig(directory=backup_dir), clock=lambda: FIXED_NOW)


class TestBuildCommand:
    """Tests for the export command line."""

    def test_command_shape(self, producer: DumpProducer, database: DatabaseConfig) -> None:
        command = producer.build_command(database, Path("/tmp/out.dump"))
        assert command == [
            "pg_dump",
            "-h", "db.internal",
            "-p", "5433",
            "-U", "backup",
            "-d", "shop",
            "-F", "c",
            "-b",
            "-v",
            "-f", "/tmp/out.dump",
        ]

    def test_password_not_on_command_line(self, producer: DumpProducer, database: DatabaseConfig) -> None:
        assert "s3cret" not in " ".join(producer.build_command(database, Path("x")))

    def test_custom_dump_command(self, fake_runner, database: DatabaseConfig) -> None:
        producer = DumpProducer(fake_runner, BackupConfig(dump_command="/opt/pg16/bin/pg_dump"))
        assert producer.build_command(database, Path("x"))[0] == "/opt/pg16/bin/pg_dump"


class TestProduce:
    """Tests for DumpProducer.produce."""

    def test_success(self, producer, fake_runner, database, backup_dir: Path) -> None:
        artifact = producer.produce(database, backup_dir)

        assert artifact.name == "backup_2024-06-15_12-00-00.dump"
        assert artifact.path.exists()
        assert artifact.size_bytes == len(fake_runner.dump_bytes)
        assert artifact.compressed is False
        assert [p.name for p in backup_dir.iterdir()] == [artifact.name]

    def test_password_passed_via_environment(self, producer, fake_runner, database, backup_dir: Path) -> None:
        producer.produce(database, backup_dir)

        command, env = fake_runner.calls[0]
        assert env == {"PGPASSWORD": "s3cret"}
        assert "s3cret" not in command

    def test_writes_to_in_progress_name(self, producer, fake_runner, database, backup_dir: Path) -> None:
        producer.produce(database, backup_dir)

        target = Path(fake_runner.commands[0][-1])
        assert target.name == ".backup_2024-06-15_12-00-00.dump.partial"
        assert not target.exists()

    def test_failure_leaves_no_artifact(self, producer, fake_runner, database, backup_dir: Path) -> None:
        fake_runner.returncode = 1
        fake_runner.partial_bytes = b"PGDMP half written"
        fake_runner.output = 'pg_dump: error: connection to server at "db.internal" failed: Connection refused'

        with pytest.raises(DumpError) as exc_info:
            producer.produce(database, backup_dir)

        assert exc_info.value.reason == "connection_failed"
        assert "Connection refused" in exc_info.value.diagnostics
        assert list(backup_dir.iterdir()) == []

    def test_disk_full(self, producer, fake_runner, database, backup_dir: Path) -> None:
        fake_runner.returncode = 1
        fake_runner.partial_bytes = b"PGDMP"
        fake_runner.output = "pg_dump: error: could not write to output file: No space left on device"

        with pytest.raises(DumpError) as exc_info:
            producer.produce(database, backup_dir)

        assert exc_info.value.reason == "disk_full"
        assert list(backup_dir.iterdir()) == []

    def test_missing_tool(self, producer, fake_runner, database, backup_dir: Path) -> None:
        def handler(command, env):
            raise ProcessError("Executable not found: pg_dump", command="pg_dump", reason="not_found")

        fake_runner.handler = handler

        with pytest.raises(DumpError) as exc_info:
            producer.produce(database, backup_dir)
        assert exc_info.value.reason == "not_found"

    def test_output_cap_exceeded(self, producer, fake_runner, database, backup_dir: Path) -> None:
        def handler(command, env):
            raise ProcessError(
                "pg_dump produced more than 1024 bytes of output",
                command="pg_dump",
                reason="output_limit_exceeded",
            )

        fake_runner.handler = handler

        with pytest.raises(DumpError) as exc_info:
            producer.produce(database, backup_dir)
        assert exc_info.value.reason == "output_limit_exceeded"
        assert list(backup_dir.iterdir()) == []

    def test_success_without_file(self, producer, fake_runner, database, backup_dir: Path) -> None:
        fake_runner.handler = lambda command, env: ProcessOutput(0, "")

        with pytest.raises(DumpError) as exc_info:
            producer.produce(database, backup_dir)
        assert exc_info.value.reason == "no_output_file"

    def test_name_collision(self, producer, fake_runner, database, backup_dir: Path) -> None:
        existing = backup_dir / "backup_2024-06-15_12-00-00.dump.gz"
        existing.write_bytes(b"older")

        with pytest.raises(DumpError) as exc_info:
            producer.produce(database, backup_dir)

        assert exc_info.value.reason == "name_collision"
        assert existing.read_bytes() == b"older"
        assert fake_runner.calls == []

    def test_stale_partial_is_replaced(self, producer, fake_runner, database, backup_dir: Path) -> None:
        stale = backup_dir / ".backup_2024-06-15_12-00-00.dump.partial"
        stale.write_bytes(b"crashed earlier")

        artifact = producer.produce(database, backup_dir)

        assert not stale.exists()
        assert artifact.path.read_bytes() == fake_runner.dump_bytes

    def test_rename_enospc(self, producer, database, backup_dir: Path) -> None:
        with patch("dumpkeeper.artifacts.producer.os.replace", side_effect=OSError(errno.ENOSPC, "No space")):
            with pytest.raises(DumpError) as exc_info:
                producer.produce(database, backup_dir)

        assert exc_info.value.reason == "disk_full"
        assert list(backup_dir.iterdir()) == []


class TestClassifyFailure:
    """Tests for classify_failure."""

    @pytest.mark.parametrize(
        ("output", "reason"),
        [
            ("FATAL:  password authentication failed for user \"backup\"", "authentication_failed"),
            ("pg_dump: error: could not translate host name \"nope\"", "connection_failed"),
            ("FATAL:  database \"shop\" does not exist", "database_not_found"),
            ("something odd happened", "export_failed"),
        ],
    )
    def test_reasons(self, output: str, reason: str) -> None:
        assert classify_failure(output) == reason
