"""Configuration settings for ChronoRepeat."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///data/chronorepeat.db"
    database_echo: bool = False

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False

    # Repeat
    default_queue: str = "default"
    repeat_key_hash_algorithm: str = "md5"  # any hashlib algorithm name

    # Logging
    log_level: str = "INFO"
    log_file: str = "data/chronorepeat.log"

    class Config:
        env_prefix = "CHRONOREPEAT_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
