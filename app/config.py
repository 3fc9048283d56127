"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./payment_aggregator.db"
    log_level: str = "INFO"

    # Rails exposed through the registry. Unknown codes are ignored.
    enabled_methods: list[str] = ["mpesa", "ecocash", "eft", "card", "mywallet", "cpay", "khetsi"]

    # MyWallet merchant account (not the end customer's credentials)
    mywallet_base_url: str = ""
    mywallet_username: str = ""
    mywallet_password: str = ""
    mywallet_timeout_seconds: float = 30.0

    # Simulated settlement delays
    mpesa_settlement_seconds: float = 10.0
    ecocash_settlement_seconds: float = 8.0
    cpay_settlement_seconds: float = 8.0
    khetsi_settlement_seconds: float = 8.0
    eft_settlement_seconds: float = 20.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
