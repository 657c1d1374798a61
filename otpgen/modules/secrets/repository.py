from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from otpgen.core.errors import NotFound, SecretsFileError
from otpgen.modules.secrets.schemas import SecretsFile

logger = logging.getLogger(__name__)


class SecretLookup(Protocol):
    def lookup_secret(self, account_id: str) -> str: ...


def parse_secrets_json(raw: bytes) -> SecretsFile:
    data = json.loads(raw)
    return SecretsFile.model_validate(data)


class FileSecretRepository:
    """Reads base32 secrets from a JSON file keyed by account id.

    The file is read on every lookup so edits are picked up without a restart.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def lookup_secret(self, account_id: str) -> str:
        stored = self._load().accounts.get(account_id)
        if stored is None:
            logger.debug("Secret lookup miss account_id=%s", account_id)
            raise NotFound(account_id)
        return stored.secret

    def list_accounts(self) -> list[str]:
        return sorted(self._load().accounts)

    def _load(self) -> SecretsFile:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            logger.debug("Secrets file missing path=%s", self._path)
            return SecretsFile()
        except OSError as exc:
            raise SecretsFileError(f"Cannot read secrets file {self._path}: {exc.strerror}") from exc
        try:
            return parse_secrets_json(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
            raise SecretsFileError(f"Invalid secrets file {self._path}") from exc
