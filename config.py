import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")


def load_config_file(path: str = CONFIG_FILE_PATH) -> dict:
    if os.path.exists(path):
        with open(path, "r") as r_file:
            return yaml.safe_load(r_file) or dict()
    return dict()


data = load_config_file()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./bank_auth.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    # Peers whose X-Forwarded-For header is honoured (addresses or CIDR ranges)
    TRUSTED_PROXIES = data.get("TRUSTED_PROXIES", [])
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    APP_NAME = data.get("APP_NAME", "SecureBank")

    # Tokens
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_REFRESH_SECRET = data.get(
        "JWT_REFRESH_SECRET", "dev-refresh-secret-key-change-in-production"
    )
    ACCESS_TOKEN_MINUTES = int(data.get("ACCESS_TOKEN_MINUTES", 60 * 24))
    REFRESH_TOKEN_DAYS = int(data.get("REFRESH_TOKEN_DAYS", 7))
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Credentials
    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))
    MAX_LOGIN_ATTEMPTS = int(data.get("MAX_LOGIN_ATTEMPTS", 5))
    ACCOUNT_LOCK_MINUTES = int(data.get("ACCOUNT_LOCK_MINUTES", 30))

    # Sessions
    SESSION_LIFETIME_SECONDS = int(data.get("SESSION_LIFETIME_SECONDS", 24 * 60 * 60))
    MAX_SESSIONS_PER_USER = int(data.get("MAX_SESSIONS_PER_USER", 5))
    CACHE_TIMEOUT_SECONDS = float(data.get("CACHE_TIMEOUT_SECONDS", 0.5))
    DB_TIMEOUT_SECONDS = float(data.get("DB_TIMEOUT_SECONDS", 5))

    # MFA
    MFA_CODE_TTL_SECONDS = int(data.get("MFA_CODE_TTL_SECONDS", 600))
    MFA_RESEND_LIMIT = int(data.get("MFA_RESEND_LIMIT", 3))
    MFA_RESEND_WINDOW_SECONDS = int(data.get("MFA_RESEND_WINDOW_SECONDS", 600))
    MFA_MAX_FAILED_ATTEMPTS = int(data.get("MFA_MAX_FAILED_ATTEMPTS", 5))
    MFA_FAILED_WINDOW_SECONDS = int(data.get("MFA_FAILED_WINDOW_SECONDS", 900))
    MFA_LOCKOUT_SECONDS = int(data.get("MFA_LOCKOUT_SECONDS", 900))
    # "fail" rejects the login when the code cannot be delivered, "log" only logs it
    MFA_DELIVERY_FAILURE_POLICY = data.get("MFA_DELIVERY_FAILURE_POLICY", "fail")

    # Mail
    MAIL_BACKEND = data.get("MAIL_BACKEND", "console")
    SMTP_HOST = data.get("SMTP_HOST", "localhost")
    SMTP_PORT = int(data.get("SMTP_PORT", 587))
    SMTP_USER = data.get("SMTP_USER", "")
    SMTP_PASSWORD = data.get("SMTP_PASSWORD", "")
    SMTP_FROM = data.get("SMTP_FROM", "security@securebank.local")

    @classmethod
    def reload(cls, path: str = CONFIG_FILE_PATH) -> None:
        """Re-read env.yaml and update every setting that it defines."""
        fresh = load_config_file(path)
        for key, value in fresh.items():
            if key.isupper() and hasattr(cls, key):
                current = getattr(cls, key)
                if isinstance(current, bool) or current is None:
                    setattr(cls, key, value)
                elif isinstance(current, (int, float)):
                    setattr(cls, key, type(current)(value))
                else:
                    setattr(cls, key, value)
