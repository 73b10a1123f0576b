"""Timestamps, run identifiers and artifact digests for audit events."""

import hashlib
import secrets
from datetime import UTC, datetime
from pathlib import Path

__all__ = ["utc_timestamp", "generate_run_id", "parse_iso_timestamp", "file_sha256"]

_CHUNK_SIZE = 8192


def utc_timestamp() -> str:
    """Return the current UTC time as ISO8601 with microseconds and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def generate_run_id() -> str:
    """Generate unique run identifier.

    Returns
    -------
    str
        ``<utc_timestamp>__<8 hex chars>``, e.g.
        ``"2026-03-01T09:15:02.123456Z__1f2e3d4c"``.
    """
    return f"{utc_timestamp()}__{secrets.token_hex(4)}"


def parse_iso_timestamp(iso_str: str) -> datetime:
    """Parse a ``Z`` or ``+00:00`` suffixed timestamp into an aware datetime."""
    return datetime.fromisoformat(iso_str.replace("Z", "+00:00"))


def file_sha256(path: Path) -> str:
    """Digest a written artifact.

    Parameters
    ----------
    path : Path
        File to hash; read in chunks.

    Returns
    -------
    str
        ``"sha256:<hex>"``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return f"sha256:{digest.hexdigest()}"
