"""Configuration objects and helpers for the court reserver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import Field, HttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    reserve_email: str = Field(..., alias="RESERVE_EMAIL")
    reserve_password: SecretStr = Field(..., alias="RESERVE_PASSWORD")
    test_mode: bool = Field(False, alias="TEST_MODE")
    booking_url: HttpUrl = Field(
        "https://app.playbypoint.com/book/ipicklewhittiernarrows?skip_waivers=true",
        alias="BOOKING_URL",
    )
    reservations_url_pattern: str = Field("**/reservations**", alias="RESERVATIONS_URL_PATTERN")

    claim_hour: int = Field(14, ge=0, le=23, alias="CLAIM_HOUR")
    claim_minute: int = Field(0, ge=0, le=59, alias="CLAIM_MINUTE")
    claim_second: int = Field(0, ge=0, le=59, alias="CLAIM_SECOND")
    timezone: str = Field("America/Los_Angeles", alias="TIMEZONE")
    poll_interval_ms: int = Field(250, gt=0, alias="POLL_INTERVAL_MS")

    court_candidates: Optional[list[str]] = Field(None, alias="COURT_CANDIDATES")
    time_slot_candidates: Optional[list[str]] = Field(None, alias="TIME_SLOT_CANDIDATES")
    sport_name: str = Field("Pickleball", alias="SPORT_NAME")
    require_full_block: bool = Field(False, alias="REQUIRE_FULL_BLOCK")
    add_participant: bool = Field(True, alias="ADD_PARTICIPANT")

    timeout_seconds: int = Field(30, gt=0, alias="TIMEOUT_SECONDS")
    click_timeout_seconds: int = Field(5, gt=0, alias="CLICK_TIMEOUT_SECONDS")
    extended_click_timeout_seconds: int = Field(15, gt=0, alias="EXTENDED_CLICK_TIMEOUT_SECONDS")
    settle_ms: int = Field(1000, ge=0, alias="SETTLE_MS")
    overlay_grace_ms: int = Field(1500, ge=0, alias="OVERLAY_GRACE_MS")
    notice_grace_ms: int = Field(750, ge=0, alias="NOTICE_GRACE_MS")
    step_pause_ms: int = Field(500, ge=0, alias="STEP_PAUSE_MS")

    headless: bool = Field(True, alias="HEADLESS")
    browser_ws_endpoint: Optional[str] = Field(None, alias="BROWSER_WS_ENDPOINT")
    browser_api_key: Optional[SecretStr] = Field(None, alias="BROWSER_API_KEY")
    screenshot_dir: str = Field("screenshots", alias="SCREENSHOT_DIR")

    telegram_bot_token: Optional[SecretStr] = Field(None, alias="TELEGRAM_BOT_TOKEN")
    telegram_chat_id: Optional[str] = Field(None, alias="TELEGRAM_CHAT_ID")

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("court_candidates", "time_slot_candidates")
    @classmethod
    def reject_empty_candidates(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        """Drop blank entries; an explicit override must still name at least one candidate."""
        if value is None:
            return None
        cleaned = [item.strip() for item in value if item.strip()]
        if not cleaned:
            raise ValueError("candidate list override must not be empty")
        return cleaned

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    @property
    def telegram_api_endpoint(self) -> str:
        """Base Telegram Bot API endpoint."""
        if not self.telegram_bot_token:
            raise RuntimeError("TELEGRAM_BOT_TOKEN is not configured")
        return f"https://api.telegram.org/bot{self.telegram_bot_token.get_secret_value()}"

    def timings(self) -> "Timings":
        return Timings(
            action_timeout_ms=self.timeout_seconds * 1000,
            click_timeout_ms=self.click_timeout_seconds * 1000,
            extended_click_timeout_ms=self.extended_click_timeout_seconds * 1000,
            settle_ms=self.settle_ms,
            overlay_grace_ms=self.overlay_grace_ms,
            notice_grace_ms=self.notice_grace_ms,
            step_pause_ms=self.step_pause_ms,
        )


@dataclass(frozen=True)
class Timings:
    """Budgets for remote operations, in milliseconds."""

    action_timeout_ms: int = 30_000
    click_timeout_ms: int = 5000
    extended_click_timeout_ms: int = 15_000
    settle_ms: int = 1000
    overlay_grace_ms: int = 1500
    notice_grace_ms: int = 750
    step_pause_ms: int = 500
