"""Domain models for tracked credentials.

Key Models:
    - TrackedCredential: One stored secret's metadata (never the value)
    - CredentialInput / CredentialUpdate: Strictly validated add and update payloads
    - RegistryDocument: The on-disk registry file
    - StatusAssessment / ClassifiedCredential: A credential with its computed status

Example:
    >>> from secrets_audit.models.domain import TrackedCredential
    >>> TrackedCredential(name="stripe-live", createdAt="2024-01-01")
"""
