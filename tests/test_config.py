"""Tests for environment configuration loading."""

from pathlib import Path

import pytest

from dumpkeeper.config import (
    CompressionMethod,
    NotificationChannelType,
    RetentionConfig,
    RetentionPolicyType,
    Settings,
)
from dumpkeeper.core.exceptions import ConfigurationError


class TestDefaults:
    """Defaults when no variables are set."""

    def test_database_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings.database.host == "localhost"
        assert settings.database.port == 5432
        assert settings.database.user == "postgres"
        assert settings.database.password == ""

    def test_retention_defaults(self) -> None:
        retention = Settings.from_env({}).retention
        assert retention.daily_window_days == 30
        assert retention.weekly_window_weeks == 12
        assert retention.monthly_window_months == 12
        assert retention.policy is RetentionPolicyType.RANK

    def test_backup_defaults(self) -> None:
        backup = Settings.from_env({}).backup
        assert backup.directory == Path("backups") / "database"
        assert backup.prefix == "backup"
        assert backup.compression is CompressionMethod.GZIP
        assert backup.max_output_bytes == 64 * 1024 * 1024
        assert backup.lock_enabled is True

    def test_notifications_disabled_by_default(self) -> None:
        notifications = Settings.from_env({}).notifications
        assert notifications.enabled is False
        assert notifications.channel is NotificationChannelType.LOG

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_NAME", "inventory")
        assert Settings.from_env().database.name == "inventory"


class TestOverrides:
    """Values taken from the environment."""

    def test_full_environment(self, temp_dir: Path) -> None:
        env = {
            "DB_HOST": "db.example.com",
            "DB_PORT": "6543",
            "DB_NAME": "shop",
            "DB_USER": "dumper",
            "DB_PASSWORD": "pw",
            "BACKUP_DIR": str(temp_dir / "dumps"),
            "BACKUP_PREFIX": "shop_backup",
            "BACKUP_COMPRESSION": "native",
            "BACKUP_MAX_OUTPUT_MB": "8",
            "BACKUP_LOCK": "off",
            "RETENTION_DAILY": "7",
            "RETENTION_WEEKLY": "4",
            "RETENTION_MONTHLY": "6",
            "RETENTION_POLICY": "calendar",
            "NOTIFY_ENABLED": "true",
            "NOTIFY_CHANNEL": "webhook",
            "NOTIFY_WEBHOOK_URL": "https://hooks.example.com/backup",
            "ADMIN_EMAIL": "ops@example.com",
        }
        settings = Settings.from_env(env)

        assert settings.database.target == "shop@db.example.com:6543"
        assert settings.backup.directory == temp_dir / "dumps"
        assert settings.backup.prefix == "shop_backup"
        assert settings.backup.compression is CompressionMethod.NATIVE
        assert settings.backup.max_output_bytes == 8 * 1024 * 1024
        assert settings.backup.lock_enabled is False
        assert settings.retention == RetentionConfig(
            daily_window_days=7,
            weekly_window_weeks=4,
            monthly_window_months=6,
            policy=RetentionPolicyType.CALENDAR,
        )
        assert settings.notifications.enabled is True
        assert settings.notifications.channel is NotificationChannelType.WEBHOOK
        assert settings.notifications.recipient == "ops@example.com"

    def test_empty_backup_dir_uses_default(self) -> None:
        assert Settings.from_env({"BACKUP_DIR": ""}).backup.directory == Path("backups") / "database"

    def test_password_not_in_repr(self) -> None:
        settings = Settings.from_env({"DB_PASSWORD": "hunter2"})
        assert "hunter2" not in repr(settings)

    def test_settings_are_immutable(self) -> None:
        settings = Settings.from_env({})
        with pytest.raises(Exception):
            settings.retention.daily_window_days = 1  # type: ignore[misc]


class TestInvalidValues:
    """Invalid values raise ConfigurationError naming the variable."""

    def test_non_integer_port(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env({"DB_PORT": "fivefourthreetwo"})
        assert exc_info.value.env_var == "DB_PORT"

    def test_port_out_of_range(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env({"DB_PORT": "70000"})
        assert exc_info.value.env_var == "DB_PORT"
        assert exc_info.value.value == "70000"
        assert exc_info.value.details["field"] == "DatabaseConfig.port"

    def test_negative_window(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env({"RETENTION_DAILY": "-1"})
        assert exc_info.value.env_var == "RETENTION_DAILY"
        assert "RETENTION_DAILY" in exc_info.value.message
        assert exc_info.value.value == "-1"

    def test_unknown_policy(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env({"RETENTION_POLICY": "fifo"})
        assert exc_info.value.env_var == "RETENTION_POLICY"
        assert "rank" in exc_info.value.message

    def test_bad_boolean(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env({"NOTIFY_ENABLED": "maybe"})
        assert exc_info.value.env_var == "NOTIFY_ENABLED"

    def test_prefix_with_separator(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env({"BACKUP_PREFIX": "../evil"})
        assert exc_info.value.env_var == "BACKUP_PREFIX"
