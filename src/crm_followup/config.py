import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    companies_csv: Path = Path("data/companies.csv")
    activities_csv: Path = Path("data/activities.csv")
    report_csv: Path = Path("data/followup_report.csv")
    record_source: str = "csv"
    api_base_url: str = "http://localhost:3001/api"
    api_timeout: int = 10
    alerts_enabled: bool = False
    alert_channel: str = "tbd"
    slack_webhook_url: str = ""


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if not value:
        return default
    return Path(value)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False

    logger.warning("Invalid boolean value for %s: %s", name, value)
    return default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid integer value for %s: %s", name, value)
        return default


def load_config() -> AppConfig:
    """Load configuration from defaults and optional .env overrides."""
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)

    defaults = AppConfig()

    return AppConfig(
        companies_csv=_env_path("COMPANIES_CSV", defaults.companies_csv),
        activities_csv=_env_path("ACTIVITIES_CSV", defaults.activities_csv),
        report_csv=_env_path("REPORT_CSV", defaults.report_csv),
        record_source=_env_str("RECORD_SOURCE", defaults.record_source).lower(),
        api_base_url=_env_str("CRM_API_URL", defaults.api_base_url),
        api_timeout=_env_int("CRM_API_TIMEOUT", defaults.api_timeout),
        alerts_enabled=_env_bool("ALERTS_ENABLED", defaults.alerts_enabled),
        alert_channel=_env_str("ALERT_CHANNEL", defaults.alert_channel),
        slack_webhook_url=_env_str(
            "SLACK_WEBHOOK_URL", defaults.slack_webhook_url
        ),
    )
