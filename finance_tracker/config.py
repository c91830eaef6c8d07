"""Configuration utilities for the Personal Finance Tracker.

Reads the Google Sheets service-account credentials, spreadsheet id and
secrets from the environment (optionally a ``.env`` file), and lets a JSON
file override sheet ranges and user settings.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent

# Spreadsheet id shipped in the example env file; treated as "not configured".
PLACEHOLDER_SPREADSHEET_ID = "1234567890abcdef1234567890abcdef12345678"
DEFAULT_SECRET_KEY = "dev-finance-tracker"

MONTH_NAMES: List[str] = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


@dataclass
class SheetRanges:
    income: str = "Income!A1:E1000"
    budget: str = "Budgeting!A1:H1000"
    expenses: str = "Spending!A1:G1000"
    assets: str = "Assets!A1:I1000"
    accounts: str = "Accounts!A1:E1000"
    settings: str = "Settings!A1:B10"


@dataclass
class NotificationPreferences:
    budget_alerts: bool = True
    monthly_reports: bool = True
    goal_achievements: bool = True


@dataclass
class Settings:
    currency: str = "Rp"
    date_format: str = "DD/MM/YYYY"
    budget_target: float = 80
    savings_goal: float = 20
    default_account: str = "Bank 1"
    stock_api_key: str = ""
    notifications: NotificationPreferences = field(default_factory=NotificationPreferences)
    months: List[str] = field(default_factory=lambda: list(MONTH_NAMES))

    def to_dict(self) -> Dict:
        return {
            "currency": self.currency,
            "dateFormat": self.date_format,
            "budgetTarget": self.budget_target,
            "savingsGoal": self.savings_goal,
            "defaultAccount": self.default_account,
            "stockApiKey": self.stock_api_key,
            "notificationPreferences": {
                "budgetAlerts": self.notifications.budget_alerts,
                "monthlyReports": self.notifications.monthly_reports,
                "goalAchievements": self.notifications.goal_achievements,
            },
            "months": list(self.months),
        }

    @staticmethod
    def from_dict(raw: Mapping, base: Optional["Settings"] = None) -> "Settings":
        """Overlay known keys (camelCase or snake_case) on ``base``."""
        current = base or Settings()
        prefs = raw.get("notificationPreferences") or raw.get("notifications") or {}
        return Settings(
            currency=str(raw.get("currency", current.currency)),
            date_format=str(raw.get("dateFormat", raw.get("date_format", current.date_format))),
            budget_target=float(raw.get("budgetTarget", raw.get("budget_target", current.budget_target))),
            savings_goal=float(raw.get("savingsGoal", raw.get("savings_goal", current.savings_goal))),
            default_account=str(raw.get("defaultAccount", raw.get("default_account", current.default_account))),
            stock_api_key=str(raw.get("stockApiKey", raw.get("stock_api_key", current.stock_api_key))),
            notifications=NotificationPreferences(
                budget_alerts=bool(prefs.get("budgetAlerts", prefs.get("budget_alerts", current.notifications.budget_alerts))),
                monthly_reports=bool(prefs.get("monthlyReports", prefs.get("monthly_reports", current.notifications.monthly_reports))),
                goal_achievements=bool(prefs.get("goalAchievements", prefs.get("goal_achievements", current.notifications.goal_achievements))),
            ),
            months=list(raw.get("months") or current.months),
        )


@dataclass
class AppConfig:
    spreadsheet_id: str = ""
    private_key: str = ""
    client_email: str = ""
    project_id: str = ""
    secret_key: str = DEFAULT_SECRET_KEY
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'finance_tracker.db'}"
    auto_refresh_minutes: float = 5
    ranges: SheetRanges = field(default_factory=SheetRanges)
    settings: Settings = field(default_factory=Settings)

    @property
    def sheets_configured(self) -> bool:
        if not (self.private_key and self.client_email and self.project_id):
            return False
        return bool(self.spreadsheet_id) and self.spreadsheet_id != PLACEHOLDER_SPREADSHEET_ID

    def service_account_info(self) -> Dict[str, str]:
        return {
            "type": "service_account",
            "private_key": self.private_key,
            "client_email": self.client_email,
            "project_id": self.project_id,
            "token_uri": "https://oauth2.googleapis.com/token",
        }

    def env_status(self) -> Dict[str, bool]:
        return {
            "GOOGLE_SHEET_ID": bool(self.spreadsheet_id),
            "GOOGLE_CLIENT_EMAIL": bool(self.client_email),
            "GOOGLE_PRIVATE_KEY": bool(self.private_key),
            "GOOGLE_PROJECT_ID": bool(self.project_id),
        }

    @staticmethod
    def load(
        config_path: Optional[str | Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """Build config from the environment and an optional JSON file.

        JSON format:
        {
          "ranges": {"income": "Income!A1:E1000"},
          "settings": {"currency": "$", "savingsGoal": 25}
        }
        """

        if environ is None:
            load_dotenv(override=False)
            environ = os.environ

        private_key = (environ.get("GOOGLE_PRIVATE_KEY") or "").replace("\\n", "\n")
        try:
            refresh = float(environ.get("AUTO_REFRESH_MINUTES") or 5)
        except ValueError:
            logger.warning("Ignoring invalid AUTO_REFRESH_MINUTES=%r", environ.get("AUTO_REFRESH_MINUTES"))
            refresh = 5

        cfg = AppConfig(
            spreadsheet_id=environ.get("GOOGLE_SHEET_ID") or environ.get("SPREADSHEET_ID") or "",
            private_key=private_key,
            client_email=environ.get("GOOGLE_CLIENT_EMAIL") or "",
            project_id=environ.get("GOOGLE_PROJECT_ID") or "",
            secret_key=environ.get("SECRET_KEY") or environ.get("AUTH_SECRET") or DEFAULT_SECRET_KEY,
            database_url=environ.get("DATABASE_URL") or AppConfig.database_url,
            auto_refresh_minutes=refresh,
        )

        if config_path:
            p = Path(config_path)
            if p.exists():
                with p.open("r", encoding="utf-8") as f:
                    raw = json.load(f)
                if isinstance(raw, dict):
                    if isinstance(raw.get("ranges"), dict):
                        known = {f.name for f in fields(SheetRanges)}
                        cfg.ranges = SheetRanges(**{
                            k: str(v) for k, v in raw["ranges"].items() if k in known
                        })
                    if isinstance(raw.get("settings"), dict):
                        cfg.settings = Settings.from_dict(raw["settings"])
            else:
                logger.warning("Config file %s not found; using defaults", p)

        if not cfg.sheets_configured:
            logger.warning("Google Sheets API credentials not configured. Using demo data.")
        return cfg
