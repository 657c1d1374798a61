from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import string
from dataclasses import dataclass
from typing import Callable, Final

from otpgen.core.codec import base32
from otpgen.core.errors import DigestError, InvalidSecret, MalformedInput
from otpgen.core.utils.time import epoch_seconds

logger = logging.getLogger(__name__)

DEFAULT_STEP_SECONDS: Final[int] = 30
DEFAULT_DIGITS: Final[int] = 6
DIGEST_SIZE: Final[int] = 20
MAX_DIGITS: Final[int] = 10

HmacSha1 = Callable[[bytes, bytes], bytes]


@dataclass(frozen=True, slots=True)
class TotpVerificationResult:
    is_valid: bool
    matched_step: int | None


def hmac_sha1(key: bytes, message: bytes) -> bytes:
    return hmac.new(key, message, hashlib.sha1).digest()


def generate_secret(bytes_length: int = 20) -> str:
    if bytes_length <= 0:
        raise ValueError("bytes_length must be positive")
    return base32.encode(secrets.token_bytes(bytes_length))


def generate(
    secret_base32: str,
    unix_time_seconds: int | None = None,
    step_seconds: int = DEFAULT_STEP_SECONDS,
    digits: int = DEFAULT_DIGITS,
    *,
    hmac_sha1: HmacSha1 = hmac_sha1,
) -> str:
    """Return the TOTP code for a base32 secret at ``unix_time_seconds``.

    The current wall clock is used when no time is given.
    """
    key = decode_secret(secret_base32)
    return generate_from_key(key, unix_time_seconds, step_seconds, digits, hmac_sha1=hmac_sha1)


def generate_from_key(
    key: bytes,
    unix_time_seconds: int | None = None,
    step_seconds: int = DEFAULT_STEP_SECONDS,
    digits: int = DEFAULT_DIGITS,
    *,
    hmac_sha1: HmacSha1 = hmac_sha1,
) -> str:
    if not key:
        raise InvalidSecret("TOTP secret is empty")
    _validate_digits(digits)
    step = time_step(unix_time_seconds, step_seconds)
    return _generate_code_for_step(key, step, digits, hmac_sha1)


def verify(
    secret_base32: str,
    code: str,
    *,
    window: int = 1,
    unix_time_seconds: int | None = None,
    step_seconds: int = DEFAULT_STEP_SECONDS,
    digits: int = DEFAULT_DIGITS,
    last_verified_step: int | None = None,
    hmac_sha1: HmacSha1 = hmac_sha1,
) -> TotpVerificationResult:
    if window < 0:
        raise ValueError("window must be non-negative")
    _validate_digits(digits)
    key = decode_secret(secret_base32)
    normalized_code = _normalize_code(code)
    if len(normalized_code) != digits:
        return TotpVerificationResult(is_valid=False, matched_step=None)

    current_step = time_step(unix_time_seconds, step_seconds)
    for offset in range(-window, window + 1):
        step = current_step + offset
        if step < 0:
            continue
        if last_verified_step is not None and step <= last_verified_step:
            continue
        expected = _generate_code_for_step(key, step, digits, hmac_sha1)
        if hmac.compare_digest(expected, normalized_code):
            return TotpVerificationResult(is_valid=True, matched_step=step)
    return TotpVerificationResult(is_valid=False, matched_step=None)


def decode_secret(secret_base32: str) -> bytes:
    try:
        key = base32.decode(secret_base32.upper())
    except MalformedInput as exc:
        raise InvalidSecret(f"Invalid TOTP secret: {exc}") from exc
    if not key:
        raise InvalidSecret("TOTP secret is empty")
    return key


def time_step(unix_time_seconds: int | None = None, step_seconds: int = DEFAULT_STEP_SECONDS) -> int:
    if step_seconds <= 0:
        raise ValueError("step_seconds must be positive")
    timestamp = epoch_seconds() if unix_time_seconds is None else int(unix_time_seconds)
    if timestamp < 0:
        raise ValueError("unix_time_seconds must be non-negative")
    return timestamp // step_seconds


def seconds_remaining(unix_time_seconds: int | None = None, step_seconds: int = DEFAULT_STEP_SECONDS) -> int:
    if step_seconds <= 0:
        raise ValueError("step_seconds must be positive")
    timestamp = epoch_seconds() if unix_time_seconds is None else int(unix_time_seconds)
    if timestamp < 0:
        raise ValueError("unix_time_seconds must be non-negative")
    return step_seconds - (timestamp % step_seconds)


def counter_bytes(counter: int) -> bytes:
    try:
        return counter.to_bytes(8, "big")
    except OverflowError as exc:
        raise ValueError("time step counter must fit in an unsigned 64-bit integer") from exc


def dynamic_truncate(digest: bytes, digits: int = DEFAULT_DIGITS) -> str:
    if len(digest) != DIGEST_SIZE:
        raise DigestError(f"Expected a {DIGEST_SIZE}-byte digest, got {len(digest)} bytes")
    offset = digest[-1] & 0x0F
    binary = int.from_bytes(digest[offset : offset + 4], "big") & 0x7FFFFFFF
    return f"{binary % 10**digits:0{digits}d}"


def _validate_digits(digits: int) -> None:
    if not 1 <= digits <= MAX_DIGITS:
        raise ValueError(f"digits must be between 1 and {MAX_DIGITS}")


def _normalize_code(code: str) -> str:
    return "".join(ch for ch in code if ch in string.digits)


def _generate_code_for_step(key: bytes, step: int, digits: int, hmac_sha1: HmacSha1) -> str:
    msg = counter_bytes(step)
    try:
        digest = bytes(hmac_sha1(key, msg))
    except Exception as exc:
        raise DigestError("HMAC-SHA1 computation failed") from exc
    logger.debug("Computed TOTP digest step=%d digits=%d", step, digits)
    return dynamic_truncate(digest, digits)
