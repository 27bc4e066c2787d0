import logging
import os

from pydantic import BaseModel, Field


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    data_dir: str = Field("data", description="Directory holding the collection JSON files")
    seed_data: bool = Field(True, description="Create missing collection files on startup")
    log_level: str = Field("INFO", description="Root logging level")
    port: int = Field(8000, description="Port used when running main.py directly")


def get_settings() -> Settings:
    return Settings(
        data_dir=os.getenv("DATA_DIR", "data"),
        seed_data=os.getenv("SEED_DATA", "true").strip().lower() in TRUTHY,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", 8000)),
    )


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
