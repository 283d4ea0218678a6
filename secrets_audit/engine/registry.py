"""
Credential registry.

Owns the ordered collection of tracked credentials and enforces its
invariants: names are unique, rotation policies are positive, dates are real
calendar dates, and a free-tier registry holds at most ``free_tier_limit``
records.

Every mutation validates first and only then touches state, so a failed call
leaves the registry exactly as it was. After a successful mutation the
registry hands itself to the injected ``persist`` callback; reads never
persist. Every read classifies the records afresh through the status engine
and returns copies, so callers can never modify the registry by accident.

Example:
    >>> registry = CredentialRegistry(persist=store_callback)
    >>> registry.add({"name": "stripe-prod", "provider": "stripe", "expiresAt": "2025-01-01"})
    >>> [c.status for c in registry.list()]
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import date
from typing import Any

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from secrets_audit.engine.status import assess
from secrets_audit.enums import Status, Tier
from secrets_audit.exceptions import (
    CredentialNotFoundError,
    DuplicateNameError,
    TierLimitExceededError,
    ValidationError,
)
from secrets_audit.models.domain import (
    DEFAULT_KIND,
    DEFAULT_PROVIDER,
    FIELD_ALIASES,
    REGISTRY_VERSION,
    ClassifiedCredential,
    CredentialInput,
    CredentialUpdate,
    RegistryDocument,
    TrackedCredential,
)

log = structlog.get_logger(__name__)

FREE_TIER_LIMIT = 10
DEFAULT_ROTATION_DAYS = 90

# Fields that may be set to None in an update and what None resets them to
_CLEARABLE_DEFAULTS: dict[str, Any] = {
    "provider": DEFAULT_PROVIDER,
    "kind": DEFAULT_KIND,
    "notes": "",
    "expires_at": None,
    "rotation_policy_days": None,
}

PersistCallback = Callable[["CredentialRegistry"], None]


def _to_validation_error(error: PydanticValidationError) -> ValidationError:
    """Reduce a pydantic error to the first problem, phrased for users."""
    first = error.errors()[0]
    loc = first.get("loc") or ()
    field = str(loc[0]) if loc else None
    kind = first.get("type")
    message = str(first.get("msg", "Invalid input"))

    if kind == "missing" and field == "name":
        return ValidationError("Secret name is required", field="name")
    if kind == "extra_forbidden":
        return ValidationError(f"Unknown field: {field}", field=field)
    if kind == "value_error":
        return ValidationError(message.removeprefix("Value error, "), field=field)
    return ValidationError(f"Invalid {field}: {message}", field=field)


def _validate(model: type[BaseModel], data: Any) -> Any:
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise ValidationError("Credential data must be a mapping of field names to values")
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as e:
        raise _to_validation_error(e) from e


def categorize_records(records: Iterable[ClassifiedCredential]) -> dict[str, list[ClassifiedCredential]]:
    """Partition classified records by status, preserving relative order."""
    buckets: dict[str, list[ClassifiedCredential]] = {status.value: [] for status in Status}
    for record in records:
        buckets[record.status.value].append(record)
    return buckets


def summarize(records: Iterable[ClassifiedCredential]) -> dict[str, int]:
    """Count classified records per status, plus a ``total``."""
    buckets = categorize_records(records)
    counts = {"total": sum(len(bucket) for bucket in buckets.values())}
    counts.update({status: len(bucket) for status, bucket in buckets.items()})
    return counts


class CredentialRegistry:
    """In-memory collection of tracked credentials.

    Args:
        credentials: Initial records, in display order
        tier: Registry tier; anything other than ``free`` is unlimited
        version: Registry file format version
        persist: Called with the registry after each successful mutation
        clock: Returns today's date; defaults to ``date.today``
        free_tier_limit: Record cap for free-tier registries
        default_rotation_days: Policy applied when ``add`` omits one
    """

    def __init__(
        self,
        credentials: Iterable[TrackedCredential] = (),
        tier: str = Tier.FREE.value,
        version: str = REGISTRY_VERSION,
        persist: PersistCallback | None = None,
        clock: Callable[[], date] | None = None,
        free_tier_limit: int = FREE_TIER_LIMIT,
        default_rotation_days: int = DEFAULT_ROTATION_DAYS,
    ) -> None:
        self._credentials: list[TrackedCredential] = [c.model_copy() for c in credentials]
        self.tier = str(tier)
        self.version = version
        self._persist = persist
        self._clock = clock or date.today
        self.free_tier_limit = free_tier_limit
        self.default_rotation_days = default_rotation_days

    @classmethod
    def from_document(cls, document: RegistryDocument, **kwargs: Any) -> CredentialRegistry:
        return cls(document.secrets, tier=document.tier, version=document.version, **kwargs)

    def __len__(self) -> int:
        return len(self._credentials)

    def __contains__(self, name: object) -> bool:
        return any(c.name == name for c in self._credentials)

    @property
    def is_free(self) -> bool:
        return self.tier == Tier.FREE.value

    def today(self) -> date:
        return self._clock()

    def _index(self, name: str) -> int:
        for i, credential in enumerate(self._credentials):
            if credential.name == name:
                return i
        raise CredentialNotFoundError(name)

    def _classify(self, credential: TrackedCredential, today: date) -> ClassifiedCredential:
        assessment = assess(credential, today)
        return ClassifiedCredential(
            credential=credential.model_copy(update={"status": assessment.status.value}),
            assessment=assessment,
        )

    def _save(self) -> None:
        if self._persist is not None:
            self._persist(self)

    def add(self, data: Mapping[str, Any] | CredentialInput) -> ClassifiedCredential:
        """Validate, default and append a new credential.

        Args:
            data: Field values keyed by snake_case or persisted camelCase name

        Returns:
            The new record with its status

        Raises:
            ValidationError: If the input is missing a name or has a bad value
            DuplicateNameError: If the name is already tracked
            TierLimitExceededError: If a free-tier registry is full
        """
        payload: CredentialInput = _validate(CredentialInput, data)

        if payload.name in self:
            raise DuplicateNameError(payload.name)
        if self.is_free and len(self) >= self.free_tier_limit:
            raise TierLimitExceededError(self.free_tier_limit)

        today = self.today()
        created = payload.created_at or today.isoformat()
        if "rotation_policy_days" in payload.model_fields_set:
            policy = payload.rotation_policy_days
        else:
            policy = self.default_rotation_days

        credential = TrackedCredential(
            name=payload.name,
            provider=payload.provider or DEFAULT_PROVIDER,
            kind=payload.kind or DEFAULT_KIND,
            created_at=created,
            expires_at=payload.expires_at,
            last_rotated=payload.last_rotated or created,
            rotation_policy_days=policy,
            notes=payload.notes or "",
        )
        classified = self._classify(credential, today)
        self._credentials.append(classified.credential.model_copy())
        self._save()

        log.info("credential_added", name=credential.name, status=classified.status.value)
        return classified

    def remove(self, name: str) -> ClassifiedCredential:
        """Remove a credential and return it as it was."""
        index = self._index(name)
        removed = self._credentials.pop(index)
        self._save()

        log.info("credential_removed", name=name)
        return self._classify(removed, self.today())

    def get(self, name: str) -> ClassifiedCredential:
        return self._classify(self._credentials[self._index(name)], self.today())

    def list(self) -> list[ClassifiedCredential]:
        """All credentials in insertion order, each freshly classified."""
        today = self.today()
        return [self._classify(c, today) for c in self._credentials]

    def rotate(self, name: str) -> ClassifiedCredential:
        """Mark a credential as rotated today."""
        index = self._index(name)
        today = self.today()
        rotated = self._credentials[index].model_copy(update={"last_rotated": today.isoformat()})
        classified = self._classify(rotated, today)
        self._credentials[index] = classified.credential.model_copy()
        self._save()

        log.info("credential_rotated", name=name, status=classified.status.value)
        return classified

    def update(self, name: str, fields: Mapping[str, Any] | CredentialUpdate) -> ClassifiedCredential:
        """Merge supplied fields into a credential.

        Only keys present in ``fields`` change. Setting ``expiresAt`` or
        ``rotationPolicy`` to None clears it; ``createdAt`` and
        ``lastRotated`` cannot be cleared.

        Raises:
            CredentialNotFoundError: If ``name`` is not tracked
            ValidationError: For unknown fields or invalid values
            DuplicateNameError: If renaming onto another tracked name
        """
        index = self._index(name)
        payload: CredentialUpdate = _validate(CredentialUpdate, fields)

        changes: dict[str, Any] = {}
        for field in payload.model_fields_set:
            value = getattr(payload, field)
            if value is None:
                if field not in _CLEARABLE_DEFAULTS:
                    alias = FIELD_ALIASES.get(field, field)
                    raise ValidationError(f"{alias} cannot be cleared", field=alias)
                value = _CLEARABLE_DEFAULTS[field]
            changes[field] = value

        new_name = changes.get("name", name)
        if new_name != name and new_name in self:
            raise DuplicateNameError(new_name)

        today = self.today()
        classified = self._classify(self._credentials[index].model_copy(update=changes), today)
        self._credentials[index] = classified.credential.model_copy()
        self._save()

        log.info("credential_updated", name=new_name, fields=sorted(changes))
        return classified

    def categorize(self) -> dict[str, list[ClassifiedCredential]]:
        return categorize_records(self.list())

    def summary(self) -> dict[str, int]:
        return summarize(self.list())

    def worst_status(self) -> Status | None:
        """Most severe status across the registry, or None when empty."""
        statuses = [c.status for c in self.list()]
        if not statuses:
            return None
        return max(statuses, key=lambda s: s.severity)

    def to_document(self) -> RegistryDocument:
        """Snapshot for persistence, with the status cache refreshed."""
        return RegistryDocument(
            version=self.version,
            tier=self.tier,
            secrets=[c.credential for c in self.list()],
        )
