"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="zordon-hub", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)
    api_prefix: str = Field(default="/api/v1", description="Prefix for REST routes")

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/zordon_hub",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA Configuration ==========
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Path to SLA hours YAML file"
    )
    deadline_lookahead_hours: float = Field(
        default=24,
        description="Default window for deadline reminder e-mails",
        gt=0
    )

    # ========== Background jobs ==========
    deadline_sweep_interval_seconds: int = Field(
        default=0,
        description="Seconds between automatic deadline sweeps (0 disables)",
        ge=0
    )
    workload_sync_interval_seconds: int = Field(
        default=0,
        description="Seconds between automatic workload reconciliations (0 disables)",
        ge=0
    )

    # ========== Mail relay ==========
    mail_api_url: Optional[str] = Field(
        default=None,
        description="HTTP mail relay endpoint (JSON POST)"
    )
    mail_api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the mail relay"
    )
    mail_from: str = Field(
        default="zordon-hub@command-center.local",
        description="Sender address for outbound mail"
    )
    mail_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for mail relay calls",
        ge=0.1,
        le=30
    )

    # ========== Realtime ==========
    realtime_enabled: bool = Field(
        default=True,
        description="Expose the /ws comment channel"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:5174"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Role(str, Enum):
    """User roles."""
    RANGER = "RANGER"
    ENGINEER = "ENGINEER"
    ADMIN = "ADMIN"


class Department(str, Enum):
    """Team colours, used for grouping only."""
    RED = "RED"
    BLUE = "BLUE"
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    PINK = "PINK"
    BLACK = "BLACK"


class Priority(str, Enum):
    """Ticket priority levels."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    PENDING_PARTS = "PENDING_PARTS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class RealtimeEvent(str, Enum):
    """Events fanned out on a ticket room."""
    NEW_COMMENT = "new_comment"
    COMMENT_UPDATED = "comment_updated"
    COMMENT_DELETED = "comment_deleted"


# ========== Status groups ==========

ACTIVE_STATUSES = frozenset({
    TicketStatus.OPEN, TicketStatus.ASSIGNED,
    TicketStatus.IN_PROGRESS, TicketStatus.PENDING_PARTS
})
TERMINAL_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})

# Resolution hours by priority
DEFAULT_SLA_HOURS: Dict[str, int] = {
    Priority.CRITICAL.value: 4,
    Priority.HIGH.value: 8,
    Priority.MEDIUM.value: 24,
    Priority.LOW.value: 72,
}

DEFAULT_CATEGORY = "General"
COMMENT_MAX_LENGTH = 2000


def ticket_room(ticket_id: str) -> str:
    """Realtime channel key for a ticket."""
    return f"ticket_{ticket_id}"
