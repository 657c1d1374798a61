from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from otpgen.core.auth.totp import (
    DEFAULT_DIGITS,
    DEFAULT_STEP_SECONDS,
    TotpVerificationResult,
    generate,
    seconds_remaining,
    time_step,
    verify,
)
from otpgen.core.config.settings import Settings
from otpgen.core.utils.time import epoch_seconds
from otpgen.modules.secrets.repository import FileSecretRepository, SecretLookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TotpCode:
    account_id: str
    code: str
    step: int
    seconds_remaining: int


class TotpService:
    def __init__(
        self,
        lookup: SecretLookup,
        *,
        step_seconds: int = DEFAULT_STEP_SECONDS,
        digits: int = DEFAULT_DIGITS,
        verify_window: int = 1,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._lookup = lookup
        self._step_seconds = step_seconds
        self._digits = digits
        self._verify_window = verify_window
        self._clock = clock or epoch_seconds

    def totp_for(self, account_id: str) -> TotpCode:
        # NotFound from the lookup propagates as-is.
        secret = self._lookup.lookup_secret(account_id)
        now = self._clock()
        code = generate(secret, now, self._step_seconds, self._digits)
        step = time_step(now, self._step_seconds)
        logger.debug("Generated TOTP account_id=%s step=%d", account_id, step)
        return TotpCode(
            account_id=account_id,
            code=code,
            step=step,
            seconds_remaining=seconds_remaining(now, self._step_seconds),
        )

    def verify_for(self, account_id: str, code: str) -> TotpVerificationResult:
        secret = self._lookup.lookup_secret(account_id)
        result = verify(
            secret,
            code,
            window=self._verify_window,
            unix_time_seconds=self._clock(),
            step_seconds=self._step_seconds,
            digits=self._digits,
        )
        logger.debug("Verified TOTP account_id=%s valid=%s", account_id, result.is_valid)
        return result


def build_totp_service(settings: Settings) -> TotpService:
    return TotpService(
        FileSecretRepository(settings.secrets_file),
        step_seconds=settings.step_seconds,
        digits=settings.digits,
        verify_window=settings.verify_window,
    )
