"""Canonical Pydantic models shared across all moesifkeys modules.

The models fall into two groups:

**Wire models** -- decoded from the key microservice responses:
    :class:`KeyEntry`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`MicroserviceConfig`, :class:`RequestConfig`, :class:`RetryConfig`,
    :class:`AuthConfig`, :class:`CollectorConfig`, and :class:`Settings`.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Wire models ---


class KeyEntry(BaseModel):
    """One organization to Moesif key pairing returned by the microservice.

    On the wire the key is named ``moesif_key``; in Python it is exposed as
    :attr:`service_key`. Instances are immutable.

    Example::

        entry = KeyEntry.model_validate({"organization_id": "org1", "moesif_key": "k1"})
        assert entry.service_key == "k1"
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    organization_id: str = Field(min_length=1)
    service_key: str = Field(alias="moesif_key", min_length=1)


# --- Configuration models ---


class MicroserviceConfig(BaseModel):
    """Location of the key microservice and its two read endpoints."""

    base_url: str = Field(
        default="https://localhost:9443",
        description="Scheme, host, and port of the key microservice",
    )
    list_path: str = Field(
        default="/moesif/keys", description="Path returning every organization's key"
    )
    detail_path: str = Field(
        default="/moesif/key", description="Path returning a single organization's key"
    )
    org_query_param: str = Field(
        default="org_id", description="Query parameter carrying the organization ID"
    )
    content_type: str = Field(default="application/json")


class RequestConfig(BaseModel):
    """HTTP settings applied to every microservice call."""

    connect_timeout: float = Field(
        default=10.0, gt=0, description="Connect, write and pool timeout in seconds"
    )
    read_timeout: float = Field(default=10.0, gt=0, description="Read timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class RetryConfig(BaseModel):
    """Fixed-delay retry budget shared by refresh and lookup."""

    attempts: int = Field(
        default=3, ge=0, description="Retries after the first failed call"
    )
    delay_seconds: float = Field(
        default=10.0, ge=0, description="Wait between attempts in seconds"
    )


class AuthConfig(BaseModel):
    """Basic-auth identity used against the microservice.

    Only the *source* of the secret is stored; the secret itself is resolved
    at startup by :func:`~moesifkeys.config.resolve_credential`.
    """

    username: Optional[str] = None
    source: str = Field(
        default="env:MOESIFKEYS_PASSWORD",
        description="Secret source: env:VAR, file:/path, prompt",
    )


class CollectorConfig(BaseModel):
    """Settings for the per-key Moesif collector clients."""

    base_url: str = Field(default="https://api.moesif.net")
    timeout: float = Field(default=10.0, gt=0)


class Settings(BaseModel):
    """User-wide configuration persisted at ``~/.config/moesifkeys/config.json``.

    Loaded and saved by :func:`~moesifkeys.config.load_settings` and
    :func:`~moesifkeys.config.save_settings`. Environment variables override
    individual fields at load time.
    """

    microservice: MicroserviceConfig = Field(default_factory=MicroserviceConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)
