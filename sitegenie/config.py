"""Typed configuration for SiteGenie.

Settings come from three layers, lowest precedence first: dataclass
defaults, ``config/settings.yaml`` and environment variables (optionally
loaded from ``.env``).
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///data/sitegenie.db"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ProviderSettings:
    """Credentials and timeouts for the external data providers.

    A provider with no credentials is treated as "not configured" and the
    pipeline uses its documented fallback.
    """
    keyword_planner_api_key: str = ""
    keyword_planner_customer_id: str = ""
    ahrefs_api_key: str = ""
    google_trends_enabled: bool = False
    namecheap_api_user: str = ""
    namecheap_api_key: str = ""
    namecheap_username: str = ""
    namecheap_client_ip: str = ""
    namecheap_sandbox: bool = False
    cloudflare_api_token: str = ""
    cloudflare_account_id: str = ""
    timeout: float = 30.0
    requests_per_minute: int = 60

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProviderSettings":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def apply_env(self) -> "ProviderSettings":
        """Overlay credentials found in the environment."""
        self.keyword_planner_api_key = os.getenv(
            "KEYWORD_PLANNER_API_KEY", self.keyword_planner_api_key
        )
        self.keyword_planner_customer_id = os.getenv(
            "KEYWORD_PLANNER_CUSTOMER_ID", self.keyword_planner_customer_id
        )
        # SEMrush key is accepted when no Ahrefs key is present
        self.ahrefs_api_key = (
            os.getenv("AHREFS_API_KEY")
            or os.getenv("SEMRUSH_API_KEY")
            or self.ahrefs_api_key
        )
        self.google_trends_enabled = _env_flag(
            "GOOGLE_TRENDS_ENABLED", self.google_trends_enabled
        )
        self.namecheap_api_user = os.getenv("NAMECHEAP_API_USER", self.namecheap_api_user)
        self.namecheap_api_key = os.getenv("NAMECHEAP_API_KEY", self.namecheap_api_key)
        self.namecheap_username = os.getenv("NAMECHEAP_USERNAME", self.namecheap_username)
        self.namecheap_client_ip = os.getenv("NAMECHEAP_CLIENT_IP", self.namecheap_client_ip)
        self.namecheap_sandbox = _env_flag("NAMECHEAP_SANDBOX", self.namecheap_sandbox)
        self.cloudflare_api_token = os.getenv("CLOUDFLARE_API_TOKEN", self.cloudflare_api_token)
        self.cloudflare_account_id = os.getenv("CLOUDFLARE_ACCOUNT_ID", self.cloudflare_account_id)
        return self


@dataclass
class AnalysisConfig:
    """Tunables of the niche recommendation pipeline.

    Attributes:
        default_limit: Recommendations returned when the request has no limit.
        min_monetization: Candidates below this monetization score are dropped.
        clamp_monetization_floor: Clamp the raw monetization score at 0
            before filtering.  The raw formula can go negative for very
            small volumes.
        min_related_volume: Scaled search volume a related keyword needs to
            become a candidate of its own.
        min_related_length: Shorter related keywords are never candidates.
        max_related_keywords: Related keywords kept per recommendation.
        max_top_competitors: Competitors kept per recommendation.
        random_seed: Seed for the mock data paths.  ``None`` keeps them
            non-reproducible.
        save_results: Persist every analysis, regardless of the request flag.
    """
    default_limit: int = 5
    min_monetization: float = 6.0
    clamp_monetization_floor: bool = True
    min_related_volume: int = 1000
    min_related_length: int = 5
    max_related_keywords: int = 10
    max_top_competitors: int = 5
    random_seed: Optional[int] = None
    save_results: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class Settings:
    """Top-level application settings."""
    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False
    log_level: str = "INFO"
    reports_dir: str = "reports"
    providers: ProviderSettings = field(default_factory=ProviderSettings)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        db_cfg = data.get("database", {}) or {}
        app_cfg = data.get("app", {}) or {}
        return cls(
            database_url=db_cfg.get("url") or DEFAULT_DATABASE_URL,
            database_echo=bool(db_cfg.get("echo", False)),
            log_level=str(app_cfg.get("log_level", "INFO")).upper(),
            reports_dir=str(app_cfg.get("reports_dir") or "reports"),
            providers=ProviderSettings.from_dict(data.get("providers", {}) or {}),
            analysis=AnalysisConfig.from_dict(data.get("analysis", {}) or {}),
        )

    @classmethod
    def load(
        cls,
        config_path: str = "config/settings.yaml",
        env_path: str = ".env",
    ) -> "Settings":
        """Load ``.env`` and the YAML file, then overlay environment values."""
        env_file = Path(env_path)
        if env_file.exists():
            load_dotenv(env_file)
            logger.info("Loaded environment from %s", env_path)

        config_file = Path(config_path)
        data: dict[str, Any] = {}
        if config_file.exists():
            with open(config_file, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
            logger.info("Configuration loaded from %s", config_path)
        else:
            logger.warning("Config file not found: %s, using defaults.", config_path)

        settings = cls.from_dict(data)
        settings.database_url = os.getenv("DATABASE_URL", settings.database_url)
        settings.analysis.save_results = _env_flag(
            "SAVE_ANALYSIS_RESULTS", settings.analysis.save_results
        )
        settings.providers.apply_env()
        return settings
