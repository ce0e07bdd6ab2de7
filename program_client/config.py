import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RPC = "https://api.devnet.solana.com"


class Settings(BaseSettings):
    solana_rpc: str = DEFAULT_RPC
    commitment: str = "confirmed"
    rpc_timeout: float = 30
    skip_preflight: bool = False
    keypair_path: Optional[str] = None  # JSON keypair file, as written by `solana-keygen`
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
