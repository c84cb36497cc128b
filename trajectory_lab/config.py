"""Configuration management using Pydantic Settings"""
import os
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

# Database file lives in the project root (one level up from trajectory_lab/)
package_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(package_dir)
default_sqlite_file = os.path.join(project_root, "trajectory_lab.db")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="TRAJECTORY_LAB_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Database
    database_url: str = f"sqlite:///{default_sqlite_file}"
    database_echo: bool = False

    # Service
    service_name: str = "trajectory-lab"
    log_level: str = "INFO"
    json_logs: bool = True
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Projection worker
    worker_mode: str = "thread"  # "thread" or "process"
    worker_max_workers: int = 1
    default_quick_years: int = 10


settings = Settings()
