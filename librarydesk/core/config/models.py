from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AppFileConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    config_version: int = Field(default=1, ge=1)
    log_dir: str = "logs"
    events_path: str = "logs/events.jsonl"


class SessionConfig(BaseModel):
    """
    session.json: session lifetimes and monitor timing, all in seconds.
    """

    model_config = ConfigDict(extra="forbid")
    short_ttl_seconds: int = Field(default=24 * 60 * 60, ge=60)
    long_ttl_seconds: int = Field(default=30 * 24 * 60 * 60, ge=60)
    warning_threshold_seconds: int = Field(default=5 * 60, ge=0)
    poll_interval_seconds: float = Field(default=60.0, gt=0)
    slot_path: str = "runtime/session.json"

    @model_validator(mode="after")
    def _check_durations(self) -> "SessionConfig":
        if self.long_ttl_seconds <= self.short_ttl_seconds:
            raise ValueError("long_ttl_seconds must be longer than short_ttl_seconds")
        if self.warning_threshold_seconds >= self.short_ttl_seconds:
            raise ValueError("warning_threshold_seconds must be shorter than short_ttl_seconds")
        return self


class SecurityConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kdf_n: int = Field(default=2**14, ge=2)
    kdf_r: int = Field(default=8, ge=1)
    kdf_p: int = Field(default=1, ge=1)
    seed_default_users: bool = True
    audit_path: str = "logs/security.jsonl"

    @field_validator("kdf_n")
    @classmethod
    def _power_of_two(cls, v: int) -> int:
        if v & (v - 1):
            raise ValueError("kdf_n must be a power of two")
        return v


class WebConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    bind_host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    login_path: str = "/auth/login"
    denied_path: str = "/dashboard?error=access_denied"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    app: AppFileConfig = Field(default_factory=AppFileConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    web: WebConfig = Field(default_factory=WebConfig)
