"""
Domain models for tracked credentials.

This module contains the records kept in a registry, the validated payloads
used to create and edit them, and the read-side views returned by the
registry. Field names are snake_case in Python; the persisted registry file
uses the camelCase keys given as aliases, so ``model_dump(by_alias=True)``
produces the on-disk shape.

Example:
    Loading a record from the registry file::

        record = TrackedCredential.model_validate(
            {
                "name": "stripe-prod",
                "provider": "stripe",
                "type": "api_key",
                "createdAt": "2024-01-01",
                "expiresAt": "2025-01-01",
                "lastRotated": "2024-01-01",
                "rotationPolicy": 90,
                "notes": "",
            }
        )
"""

from dataclasses import dataclass
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from secrets_audit.enums import Status, Tier
from secrets_audit.utils.dates import validate_calendar_date

REGISTRY_VERSION = "1.0.0"
DEFAULT_PROVIDER = "unknown"
DEFAULT_KIND = "api_key"

# Python field name -> persisted key
FIELD_ALIASES = {
    "name": "name",
    "provider": "provider",
    "kind": "type",
    "created_at": "createdAt",
    "expires_at": "expiresAt",
    "last_rotated": "lastRotated",
    "rotation_policy_days": "rotationPolicy",
    "notes": "notes",
}


def _stringify_date(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    return value


class TrackedCredential(BaseModel):
    """Metadata about one credential. Never holds the secret value itself.

    Stored dates are kept as strings so a hand-edited file with a malformed
    date still loads; the status engine treats such values as absent.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    provider: str = DEFAULT_PROVIDER
    kind: str = Field(default=DEFAULT_KIND, alias="type")
    created_at: str | None = Field(default=None, alias="createdAt")
    expires_at: str | None = Field(default=None, alias="expiresAt")
    last_rotated: str | None = Field(default=None, alias="lastRotated")
    rotation_policy_days: int | None = Field(default=None, alias="rotationPolicy")
    notes: str = ""
    status: str | None = None

    @field_validator("created_at", "expires_at", "last_rotated", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        value = _stringify_date(value)
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("rotation_policy_days", mode="before")
    @classmethod
    def _coerce_policy(cls, value: Any) -> int | None:
        # Anything that is not a whole number loads as "no policy"
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        return None

    @field_validator("provider", "kind", "notes", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any, info: Any) -> Any:
        if value is None:
            return {"provider": DEFAULT_PROVIDER, "kind": DEFAULT_KIND}.get(info.field_name, "")
        return value

    def to_record(self) -> dict[str, Any]:
        """Serialize using the persisted camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


class _CredentialFields(BaseModel):
    """Shared validation for add and update payloads."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    provider: str | None = None
    kind: str | None = Field(default=None, alias="type")
    created_at: str | None = Field(default=None, alias="createdAt")
    expires_at: str | None = Field(default=None, alias="expiresAt")
    last_rotated: str | None = Field(default=None, alias="lastRotated")
    rotation_policy_days: int | None = Field(default=None, alias="rotationPolicy")
    notes: str | None = None

    @field_validator("created_at", "expires_at", "last_rotated", mode="before")
    @classmethod
    def _check_date(cls, value: Any, info: Any) -> Any:
        value = _stringify_date(value)
        if value is None:
            return None
        validate_calendar_date(value, FIELD_ALIASES[info.field_name])
        return value

    @field_validator("rotation_policy_days", mode="before")
    @classmethod
    def _check_policy(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, bool):
            raise ValueError("rotationPolicy must be a positive whole number of days")
        try:
            days = int(value)
        except (TypeError, ValueError) as e:
            raise ValueError("rotationPolicy must be a positive whole number of days") from e
        if days != value and str(days) != str(value).strip():
            raise ValueError("rotationPolicy must be a positive whole number of days")
        if days <= 0:
            raise ValueError("rotationPolicy must be a positive whole number of days")
        return days


class CredentialInput(_CredentialFields):
    """Validated payload for adding a credential.

    Only ``name`` is required. A missing ``rotationPolicy`` key means the
    default policy applies; an explicit ``None`` means no rotation
    requirement.
    """

    name: str

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Secret name is required")
        return value.strip() if isinstance(value, str) else value


class CredentialUpdate(_CredentialFields):
    """Validated partial payload for editing a credential.

    Only fields explicitly supplied are merged; use ``model_fields_set`` to
    tell an omitted field from one set to ``None``.
    """

    name: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Secret name cannot be empty")
        return value.strip() if isinstance(value, str) else value


class RegistryDocument(BaseModel):
    """The persisted registry file."""

    model_config = ConfigDict(extra="ignore")

    version: str = REGISTRY_VERSION
    tier: str = Tier.FREE.value
    secrets: list[TrackedCredential] = Field(default_factory=list)

    @field_validator("tier", mode="before")
    @classmethod
    def _coerce_tier(cls, value: Any) -> Any:
        return Tier.FREE.value if value is None else str(value)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "tier": self.tier,
            "secrets": [record.to_record() for record in self.secrets],
        }


@dataclass(frozen=True)
class StatusAssessment:
    """Result of classifying one credential at a point in time."""

    status: Status
    """Health status."""

    age_days: int | None
    """Whole days since last rotation (or creation); None if unknown."""

    days_until_expiry: int | None
    """Whole days until expiry, negative once past; None if it never expires."""

    message: str
    """Short human-readable explanation of the status."""

    @property
    def emoji(self) -> str:
        return self.status.emoji


@dataclass(frozen=True)
class ClassifiedCredential:
    """A copy of a tracked record together with its fresh assessment.

    Returned by every registry read so that renderers and collaborators
    never recompute status themselves.
    """

    credential: TrackedCredential
    assessment: StatusAssessment

    @property
    def name(self) -> str:
        return self.credential.name

    @property
    def status(self) -> Status:
        return self.assessment.status

    def to_dict(self) -> dict[str, Any]:
        """Persisted record enriched with age, expiry countdown and message."""
        data = self.credential.to_record()
        data["status"] = self.assessment.status.value
        data["age"] = self.assessment.age_days
        data["daysUntilExpiry"] = self.assessment.days_until_expiry
        data["statusMessage"] = self.assessment.message
        return data
