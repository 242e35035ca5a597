from __future__ import annotations

import logging

from techbranch.infrastructure.logging import REDACTED, BearerTokenRedactingFilter


def _record(message: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord(
        name="techbranch.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )


def test_bearer_credentials_are_masked_in_formatted_message() -> None:
    record = _record("auth header=%s", "Bearer eyJhbGciOi.eyJzdWIi.sig-nature_1")

    assert BearerTokenRedactingFilter().filter(record) is True

    assert record.getMessage() == f"auth header=Bearer {REDACTED}"
    assert "eyJ" not in record.getMessage()


def test_scheme_match_is_case_insensitive() -> None:
    record = _record("header bearer abc123")

    BearerTokenRedactingFilter().filter(record)

    assert record.getMessage() == f"header bearer {REDACTED}"


def test_messages_without_credentials_are_untouched() -> None:
    record = _record("signin_succeeded user_id=%s", 42)

    BearerTokenRedactingFilter().filter(record)

    assert record.msg == "signin_succeeded user_id=%s"
    assert record.args == (42,)
    assert record.getMessage() == "signin_succeeded user_id=42"
