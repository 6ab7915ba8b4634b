import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from base_snapshot.constants import LARK_API_BASE_URL, API_RATE_LIMIT_INTERVAL

load_dotenv()

# ============================================================
# Application Constants
# ============================================================
DEFAULT_PORT: int = 3000
DEFAULT_REDIRECT_URI: str = "http://localhost:3000/api/auth/callback"
DEFAULT_CLIENT_URL: str = "http://localhost:5173"

# Local session file used when not running serverless
DEFAULT_SESSION_FILE: str = ".sessions.json"


def is_serverless() -> bool:
    """Detect a managed execution context (Vercel, AWS Lambda)."""
    return os.getenv("VERCEL") == "1" or bool(os.getenv("AWS_LAMBDA_FUNCTION_NAME"))


@dataclass
class AppSettings:
    """Runtime settings for the web app and CLI."""
    app_id: str = ""
    app_secret: str = ""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    client_url: str = DEFAULT_CLIENT_URL
    api_base_url: str = LARK_API_BASE_URL
    session_file: Optional[str] = DEFAULT_SESSION_FILE
    port: int = DEFAULT_PORT
    serverless: bool = False
    secure_cookies: bool = False
    rate_limit_interval: float = API_RATE_LIMIT_INTERVAL
    cors_origins: list = field(default_factory=list)

    @property
    def has_credentials(self) -> bool:
        return bool(self.app_id and self.app_secret)

    @property
    def oauth_base_url(self) -> str:
        return f"{self.api_base_url}/authen/v1"


def load_settings() -> AppSettings:
    """Build settings from the environment (and `.env`, loaded on import)."""
    serverless = is_serverless()
    client_url = os.getenv("CLIENT_URL", DEFAULT_CLIENT_URL)
    try:
        port = int(os.getenv("PORT", DEFAULT_PORT))
    except ValueError:
        port = DEFAULT_PORT

    return AppSettings(
        app_id=os.getenv("LARK_APP_ID", ""),
        app_secret=os.getenv("LARK_APP_SECRET", ""),
        redirect_uri=os.getenv("OAUTH_REDIRECT_URI", DEFAULT_REDIRECT_URI),
        client_url=client_url,
        api_base_url=os.getenv("LARK_API_BASE_URL", LARK_API_BASE_URL).rstrip("/"),
        # Serverless instances have no durable local disk
        session_file=None if serverless else os.getenv("SESSION_FILE", DEFAULT_SESSION_FILE),
        port=port,
        serverless=serverless,
        secure_cookies=os.getenv("ENVIRONMENT") == "production",
        cors_origins=[client_url],
    )
