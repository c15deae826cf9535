import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_WEBHOOK_SECRET = "change-me"


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


@dataclass(frozen=True)
class Settings:
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""

    supabase_url: str = ""
    supabase_service_role_key: str = ""
    subscriptions_table: str = "subscriptions"

    # forwarding is enabled only when backend_url is set
    backend_url: str = ""
    backend_webhook_secret: str = DEFAULT_WEBHOOK_SECRET

    app_url: str = "http://localhost:5173"
    port: int = 3000
    cors_origins: tuple[str, ...] = ("*",)
    http_timeout_seconds: float = 15.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        origins = tuple(o.strip() for o in _env("CORS_ORIGINS", "*").split(",") if o.strip())

        return cls(
            stripe_secret_key=_env("STRIPE_SECRET_KEY"),
            stripe_webhook_secret=_env("STRIPE_WEBHOOK_SECRET"),
            supabase_url=_env("SUPABASE_URL").rstrip("/"),
            # older deployments used SUPABASE_SERVICE_KEY
            supabase_service_role_key=_env("SUPABASE_SERVICE_ROLE_KEY") or _env("SUPABASE_SERVICE_KEY"),
            subscriptions_table=_env("SUPABASE_SUBSCRIPTIONS_TABLE", "subscriptions"),
            backend_url=_env("BACKEND_URL").rstrip("/"),
            backend_webhook_secret=_env("WEBHOOK_SECRET") or DEFAULT_WEBHOOK_SECRET,
            app_url=_env("APP_URL", "http://localhost:5173").rstrip("/"),
            port=int(_env("PORT", "3000")),
            cors_origins=origins or ("*",),
            http_timeout_seconds=float(_env("HTTP_TIMEOUT_SECONDS", "15")),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def persistence_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    @property
    def forwarding_enabled(self) -> bool:
        return bool(self.backend_url)
