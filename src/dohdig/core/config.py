"""Centralized configuration using Pydantic BaseSettings."""

import logging
from functools import lru_cache
from typing import Optional

import dns.exception
import dns.name
import dns.rdatatype
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Output formats that enable the IP region enrichment
REGION_FORMATS = frozenset({"ip2region", "iprg"})


def _normalize_record_type(value: str) -> str:
    """Upper-case a record type and check that it names a DNS rdata type."""
    value = value.strip().upper()

    # DoH JSON endpoints accept bare numeric types, e.g. type=65
    if value.isdigit() and int(value) <= 65535:
        return value

    try:
        dns.rdatatype.from_text(value)
    except (dns.exception.DNSException, ValueError) as e:
        raise ValueError(f"unknown record type {value!r}") from e

    return value


def validate_domain(domain: str) -> str:
    """Check that a domain is a well-formed DNS name and return it stripped."""
    domain = domain.strip()

    if not domain:
        raise ValueError("domain must not be empty")

    try:
        dns.name.from_text(domain)
    except dns.exception.DNSException as e:
        raise ValueError(f"invalid domain {domain!r}: {e}") from e

    return domain


class Settings(BaseSettings):
    """Application settings loaded from environment variables and CLI flags."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DOHDIG_",
        case_sensitive=False,
        extra="ignore",
    )

    # Query configuration
    server: str = "cloudflare"  # google, cloudflare, quad9, all or an http(s) URL
    timeout: int = Field(default=10000, gt=0)  # milliseconds, per attempt
    retries: int = Field(default=3, ge=0, le=255)
    record_type: str = "A"

    # Output configuration
    fmt: str = "default"  # default, ip2region (alias: iprg)
    # Unprefixed in the environment: XDB_FILEPATH
    xdb_filepath: Optional[str] = Field(default=None, validation_alias="xdb_filepath")

    # Logging
    log_level: str = "WARNING"

    # Sentry configuration (optional)
    # Unprefixed in the environment: SENTRY_DSN
    sentry_dsn: Optional[str] = Field(default=None, validation_alias="sentry_dsn")
    sentry_environment: str = "production"
    sentry_traces_sample_rate: float = 1.0

    @field_validator("record_type")
    @classmethod
    def check_record_type(cls, value: str) -> str:
        return _normalize_record_type(value)

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        value = value.strip().upper()

        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level {value!r}")

        return value

    @property
    def timeout_seconds(self) -> float:
        """Return the per-attempt timeout in seconds."""
        return self.timeout / 1000.0

    @property
    def use_region_output(self) -> bool:
        """Check if the IP region output format was selected."""
        return self.fmt.strip().lower() in REGION_FORMATS


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
