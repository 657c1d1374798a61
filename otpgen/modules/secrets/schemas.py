from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StoredSecret(BaseModel):
    model_config = ConfigDict(extra="ignore")

    secret: str
    label: str | None = None

    @field_validator("secret")
    @classmethod
    def _require_secret(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("secret must not be empty")
        return value


class SecretsFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    accounts: dict[str, StoredSecret] = Field(default_factory=dict)
