"""
Resolved runtime configuration models.

The resolver produces one ``ResolvedConfig`` per process. Models are frozen;
collaborators read from them and never write back. Credential values are
``SecretStr`` so they are masked in ``repr()`` and logs.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator


def _coerce_credentials(value: Any) -> Any:
    """Render numeric credential scalars (ids, card digits) as strings."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        return value
    credentials = {}
    for key, item in value.items():
        if isinstance(item, (int, float)) and not isinstance(item, bool):
            item = str(item)
        credentials[key] = item
    return credentials


def validation_summary(exc: ValidationError) -> str:
    """Describe a ValidationError by location and reason only.

    The default rendering echoes input values, which may be credentials.
    """
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    )


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")


class FireflyConfig(_FrozenModel):
    """Ledger API connection settings."""

    base_url: str = Field(alias="baseUrl")
    token_api: SecretStr = Field(alias="tokenApi")


class ScraperConfig(_FrozenModel):
    parallel: bool = True
    timeout: Optional[int] = Field(default=None, ge=0)
    start_date: Optional[str] = Field(default=None, alias="startDate")


class LogConfig(_FrozenModel):
    level: str = "info"


class CreditCardConfig(_FrozenModel):
    """A sub-account scraped under a bank entry."""

    type: str
    name: Optional[str] = None
    credentials: dict[str, SecretStr] = Field(default_factory=dict)
    start_date: Optional[str] = Field(default=None, alias="startDate")
    timeout: Optional[int] = Field(default=None, ge=0)

    @field_validator("credentials", mode="before")
    @classmethod
    def coerce_credentials(cls, v: Any) -> Any:
        return _coerce_credentials(v)

    def plain_credentials(self) -> dict[str, str]:
        """Credentials in clear text, for handing to the scraper only."""
        return {key: value.get_secret_value() for key, value in self.credentials.items()}

    def snapshot(self, index: int) -> dict:
        return {
            "index": index,
            "type": self.type,
            "startDate": self.start_date,
            "timeout": self.timeout,
        }


class BankConfig(CreditCardConfig):
    """A bank account entry, optionally holding credit cards."""

    credit_cards: tuple[CreditCardConfig, ...] = Field(default=(), alias="creditCards")

    @field_validator("credit_cards", mode="before")
    @classmethod
    def coerce_credit_cards(cls, v: Any) -> Any:
        return () if v is None else v

    def snapshot(self, index: int) -> dict:
        data = super().snapshot(index)
        data["creditCards"] = [
            card.snapshot(position) for position, card in enumerate(self.credit_cards)
        ]
        return data


class ResolvedConfig(_FrozenModel):
    """Fully overridden and decrypted runtime configuration."""

    firefly: FireflyConfig
    banks: tuple[BankConfig, ...]
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    cron: Optional[str] = None

    def snapshot(self, config_file: Optional[str] = None) -> dict:
        """Log-safe summary (dates and timeouts only, never credentials)."""
        return {
            "configFile": config_file,
            "scraperStartDate": self.scraper.start_date,
            "scraperTimeout": self.scraper.timeout,
            "banks": [bank.snapshot(index) for index, bank in enumerate(self.banks)],
        }
