import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./paper_tracker.db")
DATABASE_ECHO = _get_bool(os.getenv("DATABASE_ECHO"), default=False)

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))
SERVER_URL = os.getenv("SERVER_URL", f"http://localhost:{PORT}")

TLS_CERT_PATH = os.getenv("TLS_CERT_PATH", "")
TLS_KEY_PATH = os.getenv("TLS_KEY_PATH", "")

SERVER_LOG_PATH = os.getenv("SERVER_LOG_PATH", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# Cookie lifetime when "remember me" is ticked on the login form.
REMEMBER_ME_DAYS = int(os.getenv("REMEMBER_ME_DAYS", "30"))
# Token lifetime behind a browser-session cookie (no "remember me").
BROWSER_SESSION_HOURS = int(os.getenv("BROWSER_SESSION_HOURS", "12"))
SESSION_COOKIE_NAME = "access_token"
SESSION_COOKIE_SECURE = _get_bool(os.getenv("SESSION_COOKIE_SECURE"), default=SERVER_URL.startswith("https"))


def tls_enabled() -> bool:
    return bool(TLS_CERT_PATH and TLS_KEY_PATH)


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if bool(TLS_CERT_PATH) != bool(TLS_KEY_PATH):
        raise RuntimeError("TLS_CERT_PATH and TLS_KEY_PATH must be set together.")
