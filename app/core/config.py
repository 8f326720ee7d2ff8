from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    # App
    APP_NAME: str = Field(default="immigration_help_bot", validation_alias=AliasChoices("APP_NAME", "app_name"))
    ENVIRONMENT: str = Field(default="dev", validation_alias=AliasChoices("ENVIRONMENT", "ENV", "environment"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))

    # WhatsApp Meta
    WHATSAPP_VERIFY_TOKEN: str = Field(default="", validation_alias=AliasChoices("WHATSAPP_VERIFY_TOKEN", "whatsapp_verify_token"))
    WHATSAPP_ACCESS_TOKEN: str = Field(default="", validation_alias=AliasChoices("WHATSAPP_ACCESS_TOKEN", "whatsapp_access_token"))
    WHATSAPP_PHONE_NUMBER_ID: str = Field(default="", validation_alias=AliasChoices("WHATSAPP_PHONE_NUMBER_ID", "whatsapp_phone_number_id"))

    # Session storage: "json" (single file) or "redis"
    SESSION_BACKEND: str = Field(default="json", validation_alias=AliasChoices("SESSION_BACKEND", "session_backend"))
    SESSIONS_FILE: str = Field(default="./sessions.json", validation_alias=AliasChoices("SESSIONS_FILE", "sessions_file"))
    REDIS_URL: str = Field(default="redis://localhost:6379/0", validation_alias=AliasChoices("REDIS_URL", "redis_url"))

    # Leads + greeting
    LEADS_CSV: str = Field(default="./leads.csv", validation_alias=AliasChoices("LEADS_CSV", "leads_csv"))
    WELCOME_IMAGE: str = Field(default="assets/welcome.jpg", validation_alias=AliasChoices("WELCOME_IMAGE", "welcome_image"))

    # Human handoff: expert's WhatsApp id, notified on every "Talk to an Expert" lead
    ADMIN_WA_ID: str = Field(default="", validation_alias=AliasChoices("ADMIN_WA_ID", "ADMIN_NUMBER", "admin_wa_id"))

    # Eligibility baseline (applicants living elsewhere score +1)
    HOME_COUNTRY: str = Field(default="India", validation_alias=AliasChoices("HOME_COUNTRY", "home_country"))


settings = Settings()
