"""ABOUTME: Configuration management for the OpenIDP Flask application
ABOUTME: Loads environment variables and provides configuration objects for different environments"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from cachelib.file import FileSystemCache
from dotenv import load_dotenv
from redis import Redis

load_dotenv()


class InvalidConfig(Exception):
    """Error for when the config is not valid"""


SQLITE_DB_URI = "sqlite:///:memory:"
DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"  # noqa: S105


@dataclass(slots=True, kw_only=True)
class PostgresCfg:
    user: str
    password: str
    host: str
    port: int
    db_name: str

    def to_url(self) -> str:
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.db_name}"

    @classmethod
    def from_env(cls, default_db_name: str = "openidp", user: str = "openidp") -> "PostgresCfg":
        host = os.environ.get("DB_HOST", "localhost")
        default_port = 54321 if host == "localhost" else 5432
        return PostgresCfg(
            user=os.environ.get("DB_USER", user),
            password=os.environ.get("DB_PASSWORD", "abc123"),
            host=host,
            port=int(os.environ.get("DB_PORT", default_port)),
            db_name=os.environ.get("DB_NAME", default_db_name),
        )


def get_db_uri() -> str:
    return os.environ.get("DB_URI", PostgresCfg.from_env().to_url())


@dataclass(slots=True, kw_only=True)
class RedisCfg:
    host: str
    port: int
    db: str = ""

    def to_url(self) -> str:
        if self.db:
            return f"redis://{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}"

    @classmethod
    def from_env(cls) -> "RedisCfg":
        host = os.environ.get("REDIS_HOST", "localhost")
        default_port = 63791 if host == "localhost" else 6379
        port = int(os.environ.get("REDIS_PORT", default_port))
        return RedisCfg(host=host, port=port)


@dataclass(slots=True, kw_only=True)
class SmtpCfg:
    host: str
    port: int
    username: str
    password: str
    use_tls: bool
    from_email: str
    from_name: str

    @classmethod
    def from_env(cls) -> "SmtpCfg":
        return SmtpCfg(
            host=os.environ.get("SMTP_HOST", "localhost"),
            port=int(os.environ.get("SMTP_PORT", "1025")),
            username=os.environ.get("SMTP_USERNAME", ""),
            password=os.environ.get("SMTP_PASSWORD", ""),
            use_tls=to_bool(os.environ.get("SMTP_USE_TLS", "false"), context_str="SMTP_USE_TLS="),
            from_email=os.environ.get("SMTP_FROM_EMAIL", "noreply@openidp.local"),
            from_name=os.environ.get("SMTP_FROM_NAME", "OpenIDP"),
        )


def to_bool(value: str | None, context_str: str = "") -> bool:
    """
    Convert string to boolean. Valid options (after stripping whitespace and making lower-case)
    - False: "false", "no", "off", "0", None, ""
    - True: "true", "yes", "on", "1"

    The `context_str` is there for the error message, to help find the issue.
    """
    if value is None:
        return False
    value = value.lower().strip()
    if value in ("false", "no", "off", "0", ""):
        return False
    if value in ("true", "yes", "on", "1"):
        return True
    raise ValueError(
        f"Cannot convert '{context_str}{value}' to boolean. Valid values are: true/false, 1/0, yes/no, on/off (case-insensitive)"
    )


def bool_environ_get(key: str, default: str = "") -> bool:
    return to_bool(os.environ.get(key, default), context_str=f"{key}=")


def is_development() -> bool:
    return os.environ.get("FLASK_ENV", "development").lower().strip() == "development"


def get_log_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise InvalidConfig(f"Unknown LOG_LEVEL: {level_name}")
    return level


def should_log_all_requests() -> bool:
    return bool_environ_get("LOG_ALL_REQUESTS")


class FlaskBaseConfig:
    """Base configuration class that loads from environment variables."""

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = True
    TESTING = False
    # the logout flow keys off this cookie name
    SESSION_COOKIE_NAME = "_session"

    def __init__(self) -> None:
        self.SQLALCHEMY_DATABASE_URI = get_db_uri()
        self.SECRET_KEY: str = os.environ.get("SECRET_KEY", DEFAULT_SECRET_KEY)
        self.FLASK_ENV: str = os.environ.get("FLASK_ENV", "development")
        self.DEBUG: bool = to_bool(os.environ.get("DEBUG", "False"), context_str="DEBUG=")
        self.FORCE_HTTPS: bool = bool_environ_get("FORCE_HTTPS")

        # Babel/i18n configuration
        self.LANGUAGES = self._get_supported_language_codes()
        self.BABEL_DEFAULT_LOCALE = os.environ.get("BABEL_DEFAULT_LOCALE", "en")
        self.BABEL_DEFAULT_TIMEZONE = os.environ.get("BABEL_DEFAULT_TIMEZONE", "UTC")
        self.BABEL_TRANSLATION_DIRECTORIES = str(get_translations_path())

        # The OIDC provider mounts its authorization endpoint here
        self.OIDC_AUTH_PATH: str = os.environ.get("OIDC_AUTH_PATH", "/op/auth")

        # "console" logs emails, "smtp" sends them
        self.EMAIL_BACKEND: str = os.environ.get("EMAIL_BACKEND", "console").lower().strip()

        # Uploaded profile pictures
        self.PICTURE_STORAGE_DIR: str = os.environ.get(
            "PICTURE_STORAGE_DIR", str(Path(tempfile.gettempdir()) / "openidp-pictures")
        )
        self.PICTURE_BASE_URL: str = os.environ.get("PICTURE_BASE_URL", "http://localhost:5000/media")
        self.MAX_CONTENT_LENGTH: int = int(os.environ.get("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

        # 1 hour
        self.PASSWORD_RESET_EXPIRY_HOURS: int = int(os.environ.get("PASSWORD_RESET_EXPIRY_HOURS", "1"))

    def _get_supported_language_codes(self) -> list[str]:
        """Get list of supported language codes from environment or default."""
        languages_env = os.environ.get("SUPPORTED_LANGUAGES", "en,es,fr,de")
        languages = [lang.strip() for lang in languages_env.split(",") if lang.strip()]
        # Ensure we always have at least English as a fallback
        return languages if languages else ["en"]


class FlaskConfig(FlaskBaseConfig):
    def __init__(self) -> None:
        super().__init__()
        # Session configuration
        redis_cfg = RedisCfg.from_env()
        self.SESSION_TYPE = "redis"
        self.SESSION_REDIS = Redis(host=redis_cfg.host, port=redis_cfg.port)


class FlaskTestSQLiteConfig(FlaskBaseConfig):
    """Test configuration that uses SQLite in-memory database."""

    TESTING = True
    WTF_CSRF_ENABLED = False

    def __init__(self) -> None:
        super().__init__()
        self.SQLALCHEMY_DATABASE_URI = SQLITE_DB_URI
        self.SECRET_KEY = "test-secret-key-aockgn298zx081238"  # noqa: S105
        self.FLASK_ENV = "testing"
        self.EMAIL_BACKEND = "console"

        # Use filesystem for session cache for testing
        self.SESSION_TYPE = "cachelib"
        session_file_dir = Path(tempfile.gettempdir()) / "openidp_flask_session"
        session_file_dir.mkdir(exist_ok=True)
        self.SESSION_CACHELIB = FileSystemCache(str(session_file_dir))


class FlaskProductionConfig(FlaskConfig):
    """Production configuration with stricter defaults."""

    def __init__(self) -> None:
        super().__init__()
        self.FLASK_ENV = "production"
        self.SESSION_COOKIE_SECURE = True

        # Ensure production has proper secret key
        if self.SECRET_KEY == DEFAULT_SECRET_KEY:
            raise InvalidConfig("SECRET_KEY must be set in production")


def get_config(config_name: str = "") -> FlaskBaseConfig:
    """Return the appropriate configuration based on FLASK_ENV or config_name."""
    env = config_name.strip() or os.environ.get("FLASK_ENV", "development")
    env = env.lower().strip()

    config_classes = {
        "development": FlaskConfig,
        "testing": FlaskTestSQLiteConfig,
        "production": FlaskProductionConfig,
    }

    # Fall back to development if unknown config
    config_cls = config_classes.get(env, FlaskConfig)
    return config_cls()


def _get_project_root() -> Path:
    # Go up from src/openidp/config.py to the project root,
    # but if installed in a venv (as in production) then use PROJECT_ROOT
    required_sub_dirs = ("static", "templates")

    def _is_valid_project_root(path: Path) -> bool:
        return path.is_dir() and all((path / sub_dir).is_dir() for sub_dir in required_sub_dirs)

    # this is in order of priority to use
    # 1. explicitly set by environment variable
    # 2. editable install or direct run - so relative within the git repo
    # 3. current working directory (eg. running tests)
    possible_roots = (
        Path(os.environ.get("PROJECT_ROOT", "/non-existent")),
        Path(__file__).parents[2],
        Path.cwd(),
    )
    valid_roots = [p for p in possible_roots if _is_valid_project_root(p)]
    if not valid_roots:
        raise InvalidConfig(
            f"Could not find project root containing required directories: {' '.join(required_sub_dirs)}"
        )
    return valid_roots[0]


def get_templates_path() -> Path:
    return _get_project_root() / "templates"


def get_static_path() -> Path:
    return _get_project_root() / "static"


def get_translations_path() -> Path:
    return _get_project_root() / "translations"
