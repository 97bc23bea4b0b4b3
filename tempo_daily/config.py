import os

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional, Type, TypeVar

from eth_utils import is_address, to_checksum_address
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .chains import TEMPO, TOKEN_DECIMALS, TOKENS
from .errors import ConfigError
from .secret_file import read_secret_file


BASE_DIR = Path(__file__).resolve().parents[1]


class WalletSettings(BaseSettings):
    """Keystore location and password. Enough for the wallet-only commands."""

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    wallet_enc_path: str = Field(default="secrets/wallet.enc", description="Encrypted JSON keystore")
    wallet_password: str = Field(default="", description="Keystore password")
    wallet_password_file: str = Field(
        default="",
        description="File holding the keystore password (used when WALLET_PASSWORD is empty)",
    )
    log_level: str = Field(default="INFO", description="Logging level")

    def resolve_wallet_password(self) -> str:
        if self.wallet_password.strip():
            return self.wallet_password.strip()
        if self.wallet_password_file:
            try:
                password = read_secret_file(self.wallet_password_file)
            except (OSError, UnicodeDecodeError) as e:
                raise ConfigError(f"Cannot read WALLET_PASSWORD_FILE {self.wallet_password_file}: {e}")
            if password:
                return password
        raise ConfigError("Missing required environment variable: WALLET_PASSWORD")

    def ensure_keystore_exists(self) -> None:
        if not os.path.exists(self.wallet_enc_path):
            raise ConfigError(f"Encrypted keystore file does not exist: {self.wallet_enc_path}")


class Settings(WalletSettings):
    """Everything a daily run needs."""

    # Network
    tempo_rpc_url: str = Field(default=TEMPO.rpc_url, description="Tempo JSON-RPC endpoint")
    tempo_chain_id: int = Field(default=TEMPO.chain_id, description="Expected chain id")
    tempo_explorer_tx_base: str = Field(
        default=TEMPO.explorer_tx_base,
        description="Explorer prefix for transaction links",
    )
    rpc_timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout per RPC call")

    # Run plan
    sink_address: str = Field(
        default="",
        validate_default=True,
        description="Recipient of the daily transfers",
    )
    transfer_amount: str = Field(default="1", description="Amount per transfer in token units")
    transfer_tokens: List[str] = Field(
        default_factory=lambda: list(TOKENS.keys()),
        description="Token names transferred to the sink, in order",
    )

    # Confirmation
    confirmation_timeout_seconds: float = Field(default=120.0, gt=0, description="Max wait for a receipt")
    poll_interval_seconds: float = Field(default=2.0, gt=0, description="Receipt polling interval")
    run_deadline_seconds: Optional[float] = Field(
        default=None,
        description="Do not start a new operation once this many seconds have elapsed",
    )

    # Output
    report_base_dir: str = Field(default="reports", description="Root directory for run reports")

    @field_validator("sink_address")
    @classmethod
    def _checksum_sink(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Missing required environment variable: SINK_ADDRESS")
        if not is_address(value):
            raise ValueError(f"SINK_ADDRESS is not a valid EVM address: {value}")
        return to_checksum_address(value)

    @field_validator("transfer_amount")
    @classmethod
    def _positive_amount(cls, value: str) -> str:
        value = value.strip()
        try:
            parsed = Decimal(value)
        except InvalidOperation:
            raise ValueError(f"TRANSFER_AMOUNT must be a decimal string: received {value}")
        if not parsed.is_finite():
            raise ValueError(f"TRANSFER_AMOUNT must be a finite number: received {value}")
        if parsed <= 0:
            raise ValueError(f"TRANSFER_AMOUNT must be > 0: received {value}")
        if parsed.as_tuple().exponent < -TOKEN_DECIMALS:
            raise ValueError(
                f"TRANSFER_AMOUNT has more than {TOKEN_DECIMALS} decimals: received {value}"
            )
        return value

    @field_validator("transfer_tokens")
    @classmethod
    def _known_tokens(cls, value: List[str]) -> List[str]:
        unknown = [name for name in value if name not in TOKENS]
        if unknown:
            raise ValueError(f"Unknown TRANSFER_TOKENS entries: {', '.join(unknown)}")
        if not value:
            raise ValueError("TRANSFER_TOKENS must name at least one token")
        return value

    @property
    def transfer_amount_units(self) -> int:
        """Transfer amount in base units (6 decimals)."""
        return int(Decimal(self.transfer_amount).scaleb(TOKEN_DECIMALS))


class KeystoreExportSettings(BaseSettings):
    """Inputs of the encrypt-wallet command."""

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    private_key: str = Field(default="", validate_default=True)
    wallet_password: str = Field(default="", validate_default=True)
    out_path: str = Field(default="secrets/wallet.enc")

    @field_validator("private_key", "wallet_password")
    @classmethod
    def _required(cls, value: str, info) -> str:
        value = value.strip()
        if not value:
            raise ValueError(f"Missing required environment variable: {info.field_name.upper()}")
        return value


SettingsT = TypeVar("SettingsT", bound=BaseSettings)


def load_settings(settings_cls: Type[SettingsT] = Settings, **overrides) -> SettingsT:
    """Build settings from the environment, mapping validation errors to ConfigError."""
    try:
        return settings_cls(**overrides)
    except ValidationError as e:
        messages = []
        for error in e.errors():
            field = ".".join(str(part) for part in error.get("loc", ())) or "settings"
            messages.append(f"{field}: {error.get('msg')}")
        raise ConfigError("; ".join(messages))
