from __future__ import annotations

from typing import ClassVar, TypedDict


class ErrorDetail(TypedDict):
    code: str
    message: str


class ErrorEnvelope(TypedDict):
    error: ErrorDetail


class OtpError(Exception):
    code: ClassVar[str] = "otp_error"


class MalformedInput(OtpError, ValueError):
    code = "malformed_input"

    def __init__(self, missing_bits: int) -> None:
        super().__init__(f"Malformed base32 input: {missing_bits} bits missing")
        self.missing_bits = missing_bits


class InvalidSecret(OtpError, ValueError):
    code = "invalid_secret"


class DigestError(OtpError):
    code = "digest_error"


class NotFound(OtpError, LookupError):
    code = "not_found"

    def __init__(self, account_id: str) -> None:
        super().__init__(f"No secret stored for account {account_id!r}")
        self.account_id = account_id


class SecretsFileError(OtpError):
    code = "secrets_file_error"


def error_envelope(exc: OtpError) -> ErrorEnvelope:
    return {"error": {"code": exc.code, "message": str(exc)}}
