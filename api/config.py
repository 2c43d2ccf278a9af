"""
Unified Configuration Module for Job Automation

All configuration settings are centralized here.
Import from this module: from api.config import config
"""

import os
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


SUPPORTED_PLATFORMS = ("linkedin", "indeed", "glassdoor")

PROXY_STRATEGIES = ("round-robin", "random")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class PlatformCredentials:
    """Login credentials for one job platform."""
    username: str = ""
    password: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.username and self.password)


@dataclass
class AppConfig:
    """Unified application configuration."""

    # === Server Settings ===
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))
    DEBUG: bool = _env_bool("DEBUG", "false")
    API_KEY: str = os.getenv("API_KEY", "")
    DISABLE_API_AUTH: bool = _env_bool("DISABLE_API_AUTH", "false")
    CORS_ORIGINS: List[str] = field(default_factory=lambda: [
        origin.strip() for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if origin.strip()
    ])

    # === Browser ===
    HEADLESS: bool = _env_bool("HEADLESS", "true")
    SLOW_MO_MS: int = int(os.getenv("SLOW_MO_MS", "0"))
    BROWSER_TIMEOUT_MS: int = int(os.getenv("BROWSER_TIMEOUT_MS", "30000"))
    NAVIGATION_TIMEOUT_MS: int = int(os.getenv("NAVIGATION_TIMEOUT_MS", "60000"))
    SELECTOR_TIMEOUT_MS: int = int(os.getenv("SELECTOR_TIMEOUT_MS", "10000"))
    BROWSER_LAUNCH_RETRIES: int = int(os.getenv("BROWSER_LAUNCH_RETRIES", "2"))
    IDLE_TIMEOUT_MINUTES: float = float(os.getenv("IDLE_TIMEOUT_MINUTES", "30"))
    IDLE_SWEEP_INTERVAL_MINUTES: float = float(os.getenv("IDLE_SWEEP_INTERVAL_MINUTES", "15"))

    # === Human-like Delays (seconds) ===
    MIN_HUMAN_DELAY: float = float(os.getenv("MIN_HUMAN_DELAY", "0.5"))
    MAX_HUMAN_DELAY: float = float(os.getenv("MAX_HUMAN_DELAY", "1.5"))

    # === Proxies ===
    USE_PROXIES: bool = _env_bool("USE_PROXIES", "false")
    PROXY_LIST: List[str] = field(default_factory=lambda: [
        proxy.strip() for proxy in os.getenv("PROXY_LIST", "").split(",") if proxy.strip()
    ])
    PROXY_ROTATION: str = os.getenv("PROXY_ROTATION", "round-robin")

    # === Scraping ===
    DEFAULT_SCRAPE_QUANTITY: int = int(os.getenv("DEFAULT_SCRAPE_QUANTITY", "20"))
    MAX_SCRAPE_QUANTITY: int = int(os.getenv("MAX_SCRAPE_QUANTITY", "100"))
    # Total scrape attempts; unset means the per-platform budget in core.retry.RetryConfig
    SCRAPE_MAX_RETRIES: Optional[int] = (
        int(os.environ["SCRAPE_MAX_RETRIES"]) if os.getenv("SCRAPE_MAX_RETRIES") else None
    )
    SCRAPE_RETRY_MIN_DELAY: float = float(os.getenv("SCRAPE_RETRY_MIN_DELAY", "3.0"))
    SCRAPE_RETRY_MAX_DELAY: float = float(os.getenv("SCRAPE_RETRY_MAX_DELAY", "5.0"))
    MAX_SCROLL_ROUNDS: int = int(os.getenv("MAX_SCROLL_ROUNDS", "5"))

    # === Applying ===
    MAX_APPLICATION_STEPS: int = int(os.getenv("MAX_APPLICATION_STEPS", "15"))

    # === Platform Credentials ===
    LINKEDIN_USERNAME: str = os.getenv("LINKEDIN_USERNAME", "")
    LINKEDIN_PASSWORD: str = os.getenv("LINKEDIN_PASSWORD", "")
    INDEED_USERNAME: str = os.getenv("INDEED_USERNAME", "")
    INDEED_PASSWORD: str = os.getenv("INDEED_PASSWORD", "")
    GLASSDOOR_USERNAME: str = os.getenv("GLASSDOOR_USERNAME", "")
    GLASSDOOR_PASSWORD: str = os.getenv("GLASSDOOR_PASSWORD", "")

    # === Paths ===
    DATA_DIR: str = os.getenv("DATA_DIR", "./data")
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", os.path.join(DATA_DIR, "job_automation.db"))
    SCREENSHOT_DIR: str = os.getenv("SCREENSHOT_DIR", os.path.join(DATA_DIR, "screenshots"))
    COOKIES_DIR: str = os.getenv("COOKIES_DIR", os.path.join(DATA_DIR, "cookies"))
    LOG_DIR: str = os.getenv("LOG_DIR", "./logs")

    # === Notifications ===
    WEBHOOK_URL: str = os.getenv("WEBHOOK_URL", "")
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_CHAT_ID: str = os.getenv("TELEGRAM_CHAT_ID", "")

    def platform_credentials(self, platform: str) -> PlatformCredentials:
        """Get login credentials for a platform (empty when not configured)."""
        prefix = platform.upper()
        return PlatformCredentials(
            username=getattr(self, f"{prefix}_USERNAME", ""),
            password=getattr(self, f"{prefix}_PASSWORD", ""),
        )

    @property
    def human_delay(self) -> tuple:
        return (self.MIN_HUMAN_DELAY, self.MAX_HUMAN_DELAY)

    def validate(self) -> List[str]:
        """Validate configuration and return list of problems."""
        problems = []

        if self.USE_PROXIES and not self.PROXY_LIST:
            problems.append("USE_PROXIES is enabled but PROXY_LIST is empty")
        if self.PROXY_ROTATION not in PROXY_STRATEGIES:
            problems.append(f"PROXY_ROTATION must be one of {', '.join(PROXY_STRATEGIES)}")
        if self.MIN_HUMAN_DELAY > self.MAX_HUMAN_DELAY:
            problems.append("MIN_HUMAN_DELAY is greater than MAX_HUMAN_DELAY")
        if self.MAX_APPLICATION_STEPS < 1:
            problems.append("MAX_APPLICATION_STEPS must be at least 1")
        if not self.API_KEY and not self.DISABLE_API_AUTH:
            problems.append("API_KEY is not set (set DISABLE_API_AUTH=true for local use)")

        for platform in SUPPORTED_PLATFORMS:
            if not self.platform_credentials(platform).complete:
                problems.append(f"{platform.upper()}_USERNAME/{platform.upper()}_PASSWORD not set")

        return problems


# Global config instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    return config


# Country names and codes normalized to ISO-3166 alpha-2
COUNTRY_ALIASES: Dict[str, str] = {
    "us": "US", "usa": "US", "united states": "US", "america": "US",
    "uk": "GB", "gb": "GB", "united kingdom": "GB", "great britain": "GB", "england": "GB",
    "ca": "CA", "canada": "CA",
    "au": "AU", "australia": "AU",
    "de": "DE", "germany": "DE",
    "fr": "FR", "france": "FR",
    "in": "IN", "india": "IN",
    "sg": "SG", "singapore": "SG",
    "nl": "NL", "netherlands": "NL",
    "es": "ES", "spain": "ES",
    "it": "IT", "italy": "IT",
    "jp": "JP", "japan": "JP",
    "br": "BR", "brazil": "BR",
    "mx": "MX", "mexico": "MX",
    "ie": "IE", "ireland": "IE",
    "pl": "PL", "poland": "PL",
}

COUNTRY_NAMES: Dict[str, str] = {
    "US": "United States",
    "GB": "United Kingdom",
    "CA": "Canada",
    "AU": "Australia",
    "DE": "Germany",
    "FR": "France",
    "IN": "India",
    "SG": "Singapore",
    "NL": "Netherlands",
    "ES": "Spain",
    "IT": "Italy",
    "JP": "Japan",
    "BR": "Brazil",
    "MX": "Mexico",
    "IE": "Ireland",
    "PL": "Poland",
}

# LinkedIn geo IDs for location filtering
LINKEDIN_GEO_IDS: Dict[str, str] = {
    "US": "103644278",
    "GB": "101165590",
    "CA": "101174742",
    "AU": "101452733",
    "DE": "101282230",
    "FR": "105015875",
    "IN": "102713980",
    "SG": "102454443",
    "NL": "102890719",
    "ES": "105646813",
    "IT": "103350119",
    "JP": "101355337",
    "BR": "106057199",
    "MX": "103323778",
    "IE": "104738515",
    "PL": "105072130",
}

# Indeed country domains
INDEED_DOMAINS: Dict[str, str] = {
    "US": "www.indeed.com",
    "GB": "uk.indeed.com",
    "CA": "ca.indeed.com",
    "AU": "au.indeed.com",
    "DE": "de.indeed.com",
    "FR": "fr.indeed.com",
    "IN": "in.indeed.com",
    "SG": "sg.indeed.com",
    "NL": "nl.indeed.com",
    "ES": "es.indeed.com",
    "IT": "it.indeed.com",
    "JP": "jp.indeed.com",
    "BR": "br.indeed.com",
    "MX": "mx.indeed.com",
    "IE": "ie.indeed.com",
    "PL": "pl.indeed.com",
}
INDEED_DEFAULT_DOMAIN = "www.indeed.com"

# Indeed remote filter
INDEED_REMOTE_FILTER = "032b3046-06a3-4876-8dfd-474eb5e7ed11"


def resolve_country(value: Optional[str]) -> Optional[str]:
    """Normalize a country name or code to ISO alpha-2, None if unknown."""
    if not value:
        return None
    return COUNTRY_ALIASES.get(value.strip().lower())
