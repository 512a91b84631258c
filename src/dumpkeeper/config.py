"""
Process-wide configuration.

Settings are read from the environment once at startup and passed
explicitly into each component. All models are immutable.

Environment variables:
- DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD: export target
- BACKUP_DIR, BACKUP_PREFIX: where artifacts live and how they are named
- BACKUP_COMPRESSION (gzip|native|none), BACKUP_COMPRESSION_LEVEL
- BACKUP_DUMP_COMMAND, BACKUP_MAX_OUTPUT_MB, BACKUP_LOCK
- RETENTION_DAILY, RETENTION_WEEKLY, RETENTION_MONTHLY, RETENTION_POLICY (rank|calendar)
- NOTIFY_ENABLED, NOTIFY_CHANNEL (log|email|webhook), ADMIN_EMAIL
- SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, SMTP_USE_TLS, SMTP_FROM
- NOTIFY_WEBHOOK_URL
"""

import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from dumpkeeper.core.exceptions import ConfigurationError

DEFAULT_BACKUP_DIR = Path("backups") / "database"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

# Model field -> environment variable, for validation error messages
_FIELD_ENV_VARS = {
    "DatabaseConfig.port": "DB_PORT",
    "BackupConfig.prefix": "BACKUP_PREFIX",
    "BackupConfig.compression_level": "BACKUP_COMPRESSION_LEVEL",
    "BackupConfig.max_output_bytes": "BACKUP_MAX_OUTPUT_MB",
    "RetentionConfig.daily_window_days": "RETENTION_DAILY",
    "RetentionConfig.weekly_window_weeks": "RETENTION_WEEKLY",
    "RetentionConfig.monthly_window_months": "RETENTION_MONTHLY",
    "NotificationConfig.smtp_port": "SMTP_PORT",
}


class CompressionMethod(Enum):
    """How completed dumps are compressed."""

    GZIP = "gzip"  # external gzip binary
    NATIVE = "native"  # in-process gzip module
    NONE = "none"


class RetentionPolicyType(Enum):
    """Survivor selection outside the daily window."""

    RANK = "rank"
    CALENDAR = "calendar"


class NotificationChannelType(Enum):
    """Available notification delivery channels."""

    LOG = "log"
    EMAIL = "email"
    WEBHOOK = "webhook"


class DatabaseConfig(BaseModel):
    """Connection parameters of the database to export."""

    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    name: str = "postgres"
    user: str = "postgres"
    password: str = Field(default="", repr=False)

    model_config = {"frozen": True}

    @property
    def target(self) -> str:
        """Display form of the export target: name@host:port."""
        return f"{self.name}@{self.host}:{self.port}"


class BackupConfig(BaseModel):
    """Artifact location, naming and the export/compression tools."""

    directory: Path = DEFAULT_BACKUP_DIR
    prefix: str = "backup"
    extension: str = "dump"
    compression: CompressionMethod = CompressionMethod.GZIP
    compression_level: int = Field(default=6, ge=1, le=9)
    dump_command: str = "pg_dump"
    gzip_command: str = "gzip"
    max_output_bytes: int = Field(default=64 * 1024 * 1024, gt=0)
    lock_enabled: bool = True

    model_config = {"frozen": True}

    @field_validator("prefix", "extension")
    @classmethod
    def validate_name_part(cls, v: str) -> str:
        """Name parts must be non-empty and free of path separators."""
        if not v or "/" in v or "\\" in v:
            raise ValueError("must be a non-empty name without path separators")
        return v


class RetentionConfig(BaseModel):
    """Retention window sizes. A month counts as 30 days."""

    daily_window_days: int = Field(default=30, ge=0)
    weekly_window_weeks: int = Field(default=12, ge=0)
    monthly_window_months: int = Field(default=12, ge=0)
    policy: RetentionPolicyType = RetentionPolicyType.RANK

    model_config = {"frozen": True}


class NotificationConfig(BaseModel):
    """Operator notification settings."""

    enabled: bool = False
    channel: NotificationChannelType = NotificationChannelType.LOG
    recipient: str = "admin@localhost"

    smtp_host: str = "localhost"
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_use_tls: bool = True
    smtp_username: str | None = None
    smtp_password: str | None = Field(default=None, repr=False)
    from_address: str = "dumpkeeper@localhost"

    webhook_url: str | None = None
    timeout_seconds: int = 30
    max_retries: int = Field(default=3, ge=1)

    model_config = {"frozen": True}


class Settings(BaseModel):
    """Complete, immutable configuration for one process."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Load configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings with defaults for every unset variable

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ

        try:
            database = DatabaseConfig(
                host=env.get("DB_HOST", "localhost"),
                port=_env_int(env, "DB_PORT", 5432),
                name=env.get("DB_NAME", "postgres"),
                user=env.get("DB_USER", "postgres"),
                password=env.get("DB_PASSWORD", ""),
            )
            backup = BackupConfig(
                directory=Path(env.get("BACKUP_DIR") or DEFAULT_BACKUP_DIR),
                prefix=env.get("BACKUP_PREFIX", "backup"),
                compression=_env_choice(env, "BACKUP_COMPRESSION", CompressionMethod, CompressionMethod.GZIP),
                compression_level=_env_int(env, "BACKUP_COMPRESSION_LEVEL", 6),
                dump_command=env.get("BACKUP_DUMP_COMMAND", "pg_dump"),
                max_output_bytes=_env_int(env, "BACKUP_MAX_OUTPUT_MB", 64) * 1024 * 1024,
                lock_enabled=_env_bool(env, "BACKUP_LOCK", True),
            )
            retention = RetentionConfig(
                daily_window_days=_env_int(env, "RETENTION_DAILY", 30),
                weekly_window_weeks=_env_int(env, "RETENTION_WEEKLY", 12),
                monthly_window_months=_env_int(env, "RETENTION_MONTHLY", 12),
                policy=_env_choice(env, "RETENTION_POLICY", RetentionPolicyType, RetentionPolicyType.RANK),
            )
            notifications = NotificationConfig(
                enabled=_env_bool(env, "NOTIFY_ENABLED", False),
                channel=_env_choice(env, "NOTIFY_CHANNEL", NotificationChannelType, NotificationChannelType.LOG),
                recipient=env.get("ADMIN_EMAIL", "admin@localhost"),
                smtp_host=env.get("SMTP_HOST", "localhost"),
                smtp_port=_env_int(env, "SMTP_PORT", 587),
                smtp_use_tls=_env_bool(env, "SMTP_USE_TLS", True),
                smtp_username=env.get("SMTP_USER") or None,
                smtp_password=env.get("SMTP_PASSWORD") or None,
                from_address=env.get("SMTP_FROM", "dumpkeeper@localhost"),
                webhook_url=env.get("NOTIFY_WEBHOOK_URL") or None,
            )
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            location = f"{e.title}.{field}" if field else e.title
            env_var = _FIELD_ENV_VARS.get(location)
            raise ConfigurationError(
                f"Invalid configuration value for {env_var or location}: {first.get('msg')}",
                env_var=env_var,
                value=env.get(env_var) if env_var else None,
                details={"field": location},
            ) from e

        return cls(
            database=database,
            backup=backup,
            retention=retention,
            notifications=notifications,
        )


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    """Read an integer variable."""
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer", env_var=name, value=raw
        ) from None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    """Read a boolean flag (1/0, true/false, yes/no, on/off)."""
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean", env_var=name, value=raw)


def _env_choice(env: Mapping[str, str], name: str, enum_type: type[Enum], default: Enum):
    """Read a variable restricted to the values of an Enum."""
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return enum_type(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(
            f"{name} must be one of: {allowed}", env_var=name, value=raw
        ) from None
