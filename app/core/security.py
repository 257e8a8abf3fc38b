"""Employee credentials: PBKDF2 password hashes and signed session tokens.

A session token has three dot-separated parts: the ``est1`` format tag, the
base64url JSON claims, and an HMAC-SHA256 tag over the first two parts. The
MAC key is derived from the configured secret with a purpose label, so the
same secret never signs anything else directly.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from app.domain.enums import EmployeeRole

PBKDF2_ALGORITHM = "pbkdf2_sha256"
PBKDF2_ITERATIONS = 260_000
PASSWORD_SALT_SIZE = 16

TOKEN_PREFIX = "est1"
TOKEN_KEY_PURPOSE = b"employee-session-token"


@dataclass(frozen=True, slots=True)
class EmployeeSessionClaims:
    employee_id: UUID
    company_id: UUID
    role: EmployeeRole
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class _PasswordHash:
    iterations: int
    salt: bytes
    digest: bytes

    @classmethod
    def parse(cls, stored_hash: str) -> _PasswordHash:
        parts = stored_hash.split("$")
        if len(parts) != 4 or parts[0] != PBKDF2_ALGORITHM:
            raise ValueError("Unrecognized password hash")
        iterations = int(parts[1])
        if iterations <= 0:
            raise ValueError("Invalid iteration count")
        return cls(iterations=iterations, salt=_unb64(parts[2]), digest=_unb64(parts[3]))

    def render(self) -> str:
        return "$".join(
            (PBKDF2_ALGORITHM, str(self.iterations), _b64(self.salt), _b64(self.digest))
        )


def _b64(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _unb64(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _pbkdf2(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty.")

    salt = secrets.token_bytes(PASSWORD_SALT_SIZE)
    return _PasswordHash(
        iterations=PBKDF2_ITERATIONS,
        salt=salt,
        digest=_pbkdf2(password, salt, PBKDF2_ITERATIONS),
    ).render()


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        parsed = _PasswordHash.parse(stored_hash)
    except (ValueError, TypeError):
        return False
    candidate = _pbkdf2(password, parsed.salt, parsed.iterations)
    return hmac.compare_digest(candidate, parsed.digest)


def _token_mac(signing_input: str, secret: str) -> bytes:
    key = hmac.new(secret.encode("utf-8"), TOKEN_KEY_PURPOSE, hashlib.sha256).digest()
    return hmac.new(key, signing_input.encode("ascii"), hashlib.sha256).digest()


def create_employee_access_token(
    *,
    employee_id: UUID,
    company_id: UUID,
    role: EmployeeRole,
    secret: str,
    ttl_minutes: int,
) -> tuple[str, datetime]:
    issued_at = datetime.now(UTC)
    expires_at = issued_at + timedelta(minutes=ttl_minutes)
    claims = {
        "sub": str(employee_id),
        "tenant": str(company_id),
        "role": role.value,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }

    body = _b64(json.dumps(claims, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{TOKEN_PREFIX}.{body}"
    return f"{signing_input}.{_b64(_token_mac(signing_input, secret))}", expires_at


def _read_claims(claims: Any) -> EmployeeSessionClaims:
    if not isinstance(claims, dict):
        raise ValueError("Malformed token claims")
    try:
        return EmployeeSessionClaims(
            employee_id=UUID(claims["sub"]),
            company_id=UUID(claims["tenant"]),
            role=EmployeeRole(claims["role"]),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), UTC),
        )
    except (KeyError, ValueError, TypeError, AttributeError) as exc:
        raise ValueError("Malformed token claims") from exc


def decode_employee_access_token(token: str, secret: str) -> EmployeeSessionClaims:
    """Verify ``token`` and return its claims.

    Raises ``ValueError`` for any token that is malformed, carries another
    format tag, fails the MAC check, or has expired.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError("Malformed token")
    prefix, body, mac = parts
    if prefix != TOKEN_PREFIX:
        raise ValueError("Unsupported token format")

    try:
        expected_mac = _token_mac(f"{prefix}.{body}", secret)
        presented_mac = _unb64(mac)
    except (ValueError, UnicodeEncodeError) as exc:
        raise ValueError("Malformed token") from exc
    if not hmac.compare_digest(expected_mac, presented_mac):
        raise ValueError("Invalid token signature")

    try:
        raw_claims = json.loads(_unb64(body))
    except ValueError as exc:
        raise ValueError("Malformed token claims") from exc

    claims = _read_claims(raw_claims)
    if claims.expires_at <= datetime.now(UTC):
        raise ValueError("Token expired")
    return claims
