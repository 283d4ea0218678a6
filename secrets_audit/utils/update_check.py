"""Check PyPI for a newer secrets-audit release and upgrade in place."""

import subprocess
import sys
from dataclasses import dataclass

import httpx
import structlog

from secrets_audit import __version__
from secrets_audit.exceptions import UpdateCheckError

log = structlog.get_logger(__name__)

PYPI_URL = "https://pypi.org/pypi/{package}/json"
DEFAULT_PACKAGE = "secrets-audit"


@dataclass(frozen=True)
class UpdateInfo:
    """Result of comparing the installed version against PyPI."""

    current: str
    latest: str
    update_available: bool
    in_virtualenv: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "current": self.current,
            "latest": self.latest,
            "updateAvailable": self.update_available,
            "inVirtualenv": self.in_virtualenv,
        }


def parse_version(version_str: str) -> tuple[int, int, int]:
    """Parse a version string into a tuple for comparison.

    Missing or non-numeric components count as 0, so ``"1.2"`` and
    ``"1.2.0rc1"`` both parse as ``(1, 2, 0)``.
    """
    parts: list[int] = []
    for piece in version_str.strip().split(".")[:3]:
        digits = ""
        for char in piece:
            if not char.isdigit():
                break
            digits += char
        parts.append(int(digits) if digits else 0)
    while len(parts) < 3:
        parts.append(0)
    return (parts[0], parts[1], parts[2])


def compare_versions(a: str, b: str) -> int:
    """Return 1 if ``a`` is newer than ``b``, -1 if older, 0 if equal."""
    pa, pb = parse_version(a), parse_version(b)
    if pa > pb:
        return 1
    if pa < pb:
        return -1
    return 0


def in_virtualenv() -> bool:
    return sys.prefix != sys.base_prefix


def fetch_latest_version(package: str = DEFAULT_PACKAGE, timeout: float = 10.0) -> str:
    """Latest released version of ``package`` according to PyPI.

    Raises:
        UpdateCheckError: On network failure, HTTP error or unexpected payload
    """
    url = PYPI_URL.format(package=package)
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
        return str(response.json()["info"]["version"])
    except httpx.HTTPError as e:
        raise UpdateCheckError(f"Failed to check PyPI: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise UpdateCheckError(f"Unexpected response from PyPI for {package}") from e


def check_for_update(package: str = DEFAULT_PACKAGE, timeout: float = 10.0) -> UpdateInfo:
    """Compare the installed version with the latest release on PyPI."""
    latest = fetch_latest_version(package, timeout)
    info = UpdateInfo(
        current=__version__,
        latest=latest,
        update_available=compare_versions(latest, __version__) > 0,
        in_virtualenv=in_virtualenv(),
    )
    log.debug("update_checked", current=info.current, latest=info.latest)
    return info


def perform_update(package: str = DEFAULT_PACKAGE, timeout: float = 10.0) -> str:
    """Upgrade the package with pip and return the version now on PyPI.

    Raises:
        UpdateCheckError: If pip fails or times out
    """
    command = [sys.executable, "-m", "pip", "install", "--upgrade", package]
    try:
        subprocess.run(command, check=True, capture_output=True, text=True, timeout=120)
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip().splitlines()
        raise UpdateCheckError(f"Update failed: {detail[-1] if detail else e}") from e
    except (OSError, subprocess.TimeoutExpired) as e:
        raise UpdateCheckError(f"Update failed: {e}") from e

    log.info("package_updated", package=package)
    return fetch_latest_version(package, timeout)
