from uuid import uuid4

import pytest

from app.core.security import (
    create_employee_access_token,
    decode_employee_access_token,
    hash_password,
    verify_password,
)
from app.domain.enums import EmployeeRole

SECRET = "unit-test-secret-with-enough-length-0123"


def test_password_hash_roundtrip() -> None:
    stored = hash_password("Sup3rSecret!")

    assert stored.startswith("pbkdf2_sha256$")
    assert verify_password("Sup3rSecret!", stored)
    assert not verify_password("wrong", stored)
    assert not verify_password("Sup3rSecret!", "not-a-hash")


def test_access_token_carries_employee_claims() -> None:
    employee_id, company_id = uuid4(), uuid4()
    token, expires_at = create_employee_access_token(
        employee_id=employee_id,
        company_id=company_id,
        role=EmployeeRole.ADMIN,
        secret=SECRET,
        ttl_minutes=5,
    )

    claims = decode_employee_access_token(token, SECRET)

    assert claims.employee_id == employee_id
    assert claims.company_id == company_id
    assert claims.role == EmployeeRole.ADMIN
    assert claims.expires_at == expires_at.replace(microsecond=0)


def test_tampered_or_foreign_token_is_rejected() -> None:
    token, _ = create_employee_access_token(
        employee_id=uuid4(),
        company_id=uuid4(),
        role=EmployeeRole.AGENT,
        secret=SECRET,
        ttl_minutes=5,
    )
    prefix, body, mac = token.split(".")

    with pytest.raises(ValueError):
        decode_employee_access_token(token, "another-secret")
    with pytest.raises(ValueError):
        decode_employee_access_token(f"{prefix}.{body}x.{mac}", SECRET)
    with pytest.raises(ValueError):
        decode_employee_access_token("garbage", SECRET)


def test_expired_token_is_rejected() -> None:
    token, _ = create_employee_access_token(
        employee_id=uuid4(),
        company_id=uuid4(),
        role=EmployeeRole.AGENT,
        secret=SECRET,
        ttl_minutes=-1,
    )

    with pytest.raises(ValueError, match="expired"):
        decode_employee_access_token(token, SECRET)


def test_token_format_tag_is_checked_before_signature() -> None:
    token, _ = create_employee_access_token(
        employee_id=uuid4(),
        company_id=uuid4(),
        role=EmployeeRole.AGENT,
        secret=SECRET,
        ttl_minutes=5,
    )
    _, body, mac = token.split(".")

    assert token.startswith("est1.")
    with pytest.raises(ValueError, match="Unsupported token format"):
        decode_employee_access_token(f"est2.{body}.{mac}", SECRET)
    # Untagged two-part tokens are rejected.
    with pytest.raises(ValueError, match="Malformed token"):
        decode_employee_access_token(f"{body}.{mac}", SECRET)


def test_password_hash_with_unusable_parameters_fails_closed() -> None:
    stored = hash_password("Sup3rSecret!")
    _, _, salt, digest = stored.split("$")

    assert not verify_password("Sup3rSecret!", f"pbkdf2_sha256$0${salt}${digest}")
    assert not verify_password("Sup3rSecret!", f"pbkdf2_sha1$260000${salt}${digest}")
    assert not verify_password("Sup3rSecret!", f"{stored}$extra")
