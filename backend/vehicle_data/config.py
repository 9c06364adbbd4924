"""
Configuration management for the Vehicle Data backend.
Uses pydantic-settings for environment variable handling.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# backend/data holds the SQLite file, the incoming CSV and its archive
DATA_DIR = Path(__file__).parent.parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # API Configuration
    api_title: str = "Vehicle Data API"
    api_version: str = "1.0.0"
    debug: bool = False

    # Storage
    db_path: Path = DATA_DIR / "vehicle_data.db"

    # CSV Import
    import_csv_path: Path = DATA_DIR / "sample-vin-data.csv"
    archive_dir: Path = DATA_DIR / "archive"
    import_on_startup: bool = False  # seed the store from import_csv_path at launch

    # NHTSA vPIC decoding
    nhtsa_api_url: str = "https://vpic.nhtsa.dot.gov/api/vehicles/DecodeVin/{vin}?format=json"
    decode_timeout: float = 10.0  # seconds per decode call
    augment_concurrency: int = 4  # decode calls in flight during a bulk pass

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100


# Global settings instance
settings = Settings()
