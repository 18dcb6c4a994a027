"""
Configuration management for the parity suite.

Loads configuration from an optional JSON settings file and environment
variables (environment wins) and provides a centralized Config dataclass.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_DATE_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%d",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d/%m/%Y",
)


def _parse_bool(value, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Centralized configuration from settings file and environment."""

    # TMDB API
    api_key: str
    bearer_token: str = ""
    base_url: str = "https://api.themoviedb.org/3"

    # Website
    discover_url: str = "https://www.themoviedb.org/discover/movie"

    # Browser
    headless: bool = True
    page_load_timeout: int = 45
    wait_timeout: int = 10

    # HTTP settings
    request_timeout: int = 30
    max_retries: int = 5
    rate_limit_per_second: int = 35

    # Fetch settings
    max_pages: int = 2
    ui_card_limit: int = 20

    # Accepted release date formats, tried in order
    date_formats: List[str] = field(default_factory=lambda: list(DEFAULT_DATE_FORMATS))

    # Paths
    project_dir: Path = field(default_factory=Path.cwd)
    log_dir: Path = field(default_factory=lambda: Path.cwd() / "logs")
    report_dir: Path = field(default_factory=lambda: Path.cwd() / "reports")

    @classmethod
    def from_env(
        cls,
        env_path: Optional[str] = None,
        settings_path: Optional[str] = None,
    ) -> "Config":
        """
        Load configuration from a settings file and environment variables.

        Args:
            env_path: Optional path to .env file. If not provided,
                     looks for .env in the current directory.
            settings_path: Optional JSON file shaped like
                     {"API": {...}, "UI": {...}, "Browser": {...}}.

        Returns:
            Config instance with loaded values.

        Raises:
            ValueError: If the API key is missing or the settings file is unreadable.
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        settings = cls._load_settings(settings_path or os.getenv("SETTINGS_PATH"))
        api_section = settings.get("API", {})
        ui_section = settings.get("UI", {})
        browser_section = settings.get("Browser", {})

        api_key = os.getenv("TMDB_API_KEY") or os.getenv("API_KEY") or api_section.get("ApiKey", "")
        if not api_key:
            raise ValueError("TMDB_API_KEY environment variable is required")

        bearer_token = os.getenv("TMDB_BEARER_TOKEN", api_section.get("BearerToken", ""))
        base_url = os.getenv("TMDB_BASE_URL", api_section.get("BaseUrl", cls.base_url))
        discover_url = os.getenv("TMDB_DISCOVER_URL", ui_section.get("DiscoverUrl", cls.discover_url))

        headless = _parse_bool(
            os.getenv("BROWSER_HEADLESS", browser_section.get("Headless")), default=True
        )

        formats_str = os.getenv("DATE_FORMATS", "")
        date_formats = [f.strip() for f in formats_str.split(",") if f.strip()]
        if not date_formats:
            date_formats = list(DEFAULT_DATE_FORMATS)

        project_dir = Path(os.getenv("PROJECT_DIR", Path.cwd()))

        try:
            return cls(
                api_key=api_key,
                bearer_token=bearer_token,
                base_url=base_url.rstrip("/"),
                discover_url=discover_url,
                headless=headless,
                page_load_timeout=int(os.getenv("PAGE_LOAD_TIMEOUT", "45")),
                wait_timeout=int(os.getenv("WAIT_TIMEOUT", browser_section.get("WaitTimeout", 10))),
                request_timeout=int(os.getenv("REQUEST_TIMEOUT", "30")),
                max_retries=int(os.getenv("MAX_RETRIES", "5")),
                rate_limit_per_second=int(os.getenv("RATE_LIMIT", "35")),
                max_pages=int(os.getenv("MAX_PAGES", "2")),
                ui_card_limit=int(os.getenv("UI_CARD_LIMIT", "20")),
                date_formats=date_formats,
                project_dir=project_dir,
                log_dir=project_dir / "logs",
                report_dir=project_dir / "reports",
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid numeric setting: {e}") from e

    @staticmethod
    def _load_settings(settings_path: Optional[str]) -> dict:
        """Read the optional JSON settings file."""
        if not settings_path:
            return {}
        path = Path(settings_path)
        if not path.exists():
            raise ValueError(f"Settings file not found at {path}")
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Settings file {path} is not valid JSON: {e}") from e

    @property
    def uses_bearer_auth(self) -> bool:
        return bool(self.bearer_token)

    def get_headers(self) -> dict:
        """Get headers for TMDB API requests."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        return headers

    def get_auth_params(self) -> dict:
        """Query-string credentials, used when no bearer token is configured."""
        if self.bearer_token:
            return {}
        return {"api_key": self.api_key}
