from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "postgresql+psycopg2://ledger:ledger@db:5432/backoffice"
    log_level: str = "INFO"

    # Cash-flow entries created by the ledger are tagged with this module
    ledger_module: str = "WAREHOUSE"
    currency_symbol: str = "₦"
    receipt_prefix: str = "WHS"

    # Optimistic-lock conflicts are retried this many times before surfacing
    max_payment_retries: int = 3

    # Allowed drift when auditing stored debt amounts
    debt_tolerance: Decimal = Decimal("0.01")

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
