"""WhatsApp OTP Gateway — configuration loaded from environment."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── HTTP listener ─────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 3000

    # ── Session ───────────────────────────────────────────
    session_dir: str = "session"
    messaging_backend: Literal["cloud", "console"] = "cloud"
    reconnect_delay_seconds: float = 5.0

    # ── WhatsApp Cloud API ────────────────────────────────
    whatsapp_api_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_app_id: str = ""
    whatsapp_app_secret: str = ""
    graph_api_base_url: str = "https://graph.facebook.com"
    graph_api_version: str = "v21.0"
    graph_api_timeout: float | None = None

    # ── OTP ───────────────────────────────────────────────
    otp_ttl_seconds: float = 300.0
    site_url: str = "https://example.com/"
    otp_footer_text: str = "Do not share this code with anyone."

    # Sent once on the first successful connection; leave empty to disable.
    admin_notify_number: str = ""
    admin_notify_text: str = "🌟 OTP gateway connected successfully! 🌟"

    # ── App ───────────────────────────────────────────────
    app_name: str = "WhatsApp OTP Gateway"
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
