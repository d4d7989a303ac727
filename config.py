import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Data file settings
    data_file: str = os.getenv("LIBRARY_DATA_FILE", "library_data.txt")
    field_delimiter: str = os.getenv("LIBRARY_FIELD_DELIMITER", "|")
    # Skip malformed lines with a warning instead of aborting the load
    skip_malformed_lines: bool = _env_flag("LIBRARY_SKIP_MALFORMED")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Catalog")
    log_level: str = os.getenv("LOG_LEVEL", "WARNING")


settings = Settings()
