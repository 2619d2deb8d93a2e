"""Pre-shared key authentication using an HMAC-SHA256 challenge-response."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from pathlib import Path

NONCE_LENGTH = 32
MAX_PSK_LENGTH = 1024


class AuthError(ValueError):
    """Raised for an invalid pre-shared key."""


def generate_nonce() -> str:
    """Return a random hex-encoded challenge nonce."""
    return secrets.token_hex(NONCE_LENGTH)


def compute_response(nonce: str, psk: str) -> str:
    """Return the hex HMAC-SHA256 of the nonce keyed with the PSK."""
    return hmac.new(psk.encode(), nonce.encode(), hashlib.sha256).hexdigest()


def verify_response(nonce: str, psk: str, response: str) -> bool:
    """Check a response in constant time."""
    expected = compute_response(nonce, psk)
    return hmac.compare_digest(expected.encode(), response.encode())


def validate_psk(psk: str) -> None:
    """Raise AuthError if the PSK is empty or longer than MAX_PSK_LENGTH bytes."""
    length = len(psk.encode())
    if length > MAX_PSK_LENGTH:
        raise AuthError(
            f"PSK exceeds maximum length of {MAX_PSK_LENGTH} bytes (got {length} bytes)"
        )
    if length == 0:
        raise AuthError("PSK cannot be empty")


def read_psk_file(path: str | Path) -> str:
    """Read a PSK from a file, stripping surrounding whitespace."""
    psk = Path(path).read_text(encoding="utf-8").strip()
    validate_psk(psk)
    return psk


@dataclass
class AuthConfig:
    """Authentication settings."""

    psk: str | None = None

    def is_required(self) -> bool:
        return self.psk is not None