"""Custom exception hierarchy for secrets-audit.

This module defines a structured exception hierarchy that enables precise
error handling and user-friendly error messages across the CLI, the MCP
server and the registry itself.

Every exception carries a machine-readable ``code`` class attribute. The CLI
prints it in ``--json`` mode and the MCP server returns it in its error
envelope, so callers can branch on the kind of failure without parsing
messages.

Exception Hierarchy:
    SecretsAuditError (base)
    ├── ConfigurationError
    ├── ValidationError
    ├── DuplicateNameError
    ├── TierLimitExceededError
    ├── TierFeatureError
    ├── CredentialNotFoundError
    ├── PersistenceError
    │   ├── ConfigNotFoundError
    │   └── ConfigExistsError
    ├── ScannerError
    │   └── ScannerUnavailableError
    └── UpdateCheckError

Example Usage:
    >>> from secrets_audit.exceptions import PersistenceError
    >>> try:
    ...     document = json.loads(path.read_text())
    ... except json.JSONDecodeError as e:
    ...     raise PersistenceError(f"Corrupt registry file: {path}") from e
"""


class SecretsAuditError(Exception):
    """Base exception for all secrets-audit errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code
    """

    code = "ERR_OPERATION"

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Error envelope shared by JSON output and the MCP server."""
        return {"error": self.message, "code": self.code}


class ConfigurationError(SecretsAuditError):
    """Settings file is missing, unreadable or invalid.

    Examples:
        - Settings file not found
        - Invalid YAML syntax
        - Invalid setting values
    """

    code = "ERR_CONFIGURATION"


class ValidationError(SecretsAuditError):
    """Credential input failed validation.

    Raised before any state is touched, so the registry is never left
    partially updated.

    Attributes:
        field: Name of the offending field, when known

    Examples:
        - Missing name
        - Malformed or out-of-range calendar date
        - Non-positive rotation policy
        - Unknown field in an update
    """

    code = "ERR_VALIDATION"

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            field: Field that failed validation
        """
        self.field = field
        super().__init__(message)


class DuplicateNameError(SecretsAuditError):
    """A credential with the same name is already tracked."""

    code = "ERR_DUPLICATE"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Secret with name "{name}" already exists')


class TierLimitExceededError(SecretsAuditError):
    """The free tier cap on tracked credentials has been reached."""

    code = "ERR_TIER_LIMIT"

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"Free tier limit reached ({limit} secrets). Upgrade to Pro for unlimited secrets."
        )


class TierFeatureError(SecretsAuditError):
    """A paid-tier feature was requested on a free-tier registry."""

    code = "ERR_TIER_FEATURE"


class CredentialNotFoundError(SecretsAuditError):
    """Operation referenced a name that is not tracked."""

    code = "ERR_NOT_FOUND"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Secret "{name}" not found')


class PersistenceError(SecretsAuditError):
    """The registry file could not be read or written.

    Not recoverable by the registry itself; callers decide whether to retry,
    abort or re-initialize.

    Attributes:
        path: Path of the registry file involved, when known
    """

    code = "ERR_PERSISTENCE"

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            path: Registry file path
        """
        self.path = path
        super().__init__(message)


class ConfigNotFoundError(PersistenceError):
    """No registry file exists in the local or global location."""

    code = "ERR_NO_CONFIG"

    def __init__(self, message: str = 'No config file found. Run "secrets-audit init" to create one.') -> None:
        super().__init__(message)


class ConfigExistsError(PersistenceError):
    """``init`` targeted a location that already holds a registry file."""

    code = "ERR_CONFIG_EXISTS"

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file already exists at {path}", path=path)


class ScannerError(SecretsAuditError):
    """A cloud credential scanner failed.

    Attributes:
        scanner: Name of the scanner (e.g., "aws", "github")
        suggestion: Optional suggestion for resolution
    """

    code = "ERR_SCANNER"

    def __init__(self, message: str, scanner: str | None = None, suggestion: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            scanner: Scanner that failed
            suggestion: Optional suggestion for resolution
        """
        self.scanner = scanner
        self.suggestion = suggestion
        super().__init__(message)


class ScannerUnavailableError(ScannerError):
    """The SDK a scanner depends on is not installed."""

    code = "ERR_SCANNER_UNAVAILABLE"


class UpdateCheckError(SecretsAuditError):
    """Checking for or installing a new release failed."""

    code = "ERR_UPDATE"
