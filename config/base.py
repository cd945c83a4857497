# config/base.py
import os


def _coerce_bool(value, default=False):
    """Convert environment-style truthy/falsey values to bool."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    value_str = str(value).strip().lower()
    if value_str in {"1", "true", "yes", "on"}:
        return True
    if value_str in {"0", "false", "no", "off"}:
        return False
    return default


def _coerce_int(value, default, *, minimum=None):
    """Parse an integer setting, falling back to ``default`` on bad input."""
    if value is None or str(value).strip() == "":
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    if minimum is not None and number < minimum:
        return default
    return number


def _parse_extension_list(value, default=("xlsx", "csv", "txt")):
    """
    Parse a comma-separated extension list while keeping order and removing duplicates.

    Returns:
        tuple[str, ...]: Lower-cased extensions without leading dots.
    """
    if not value:
        return tuple(default)

    seen = set()
    extensions = []
    for raw_item in value.split(","):
        item = raw_item.strip().lower().lstrip(".")
        if not item or item in seen:
            continue
        seen.add(item)
        extensions.append(item)
    return tuple(extensions) or tuple(default)


class Config:
    _flask_env = os.environ.get("FLASK_ENV", "development")
    _is_testing = _flask_env == "testing"
    _is_production = _flask_env == "production"

    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Only require SECRET_KEY in production mode
    if not SECRET_KEY and _is_production:
        raise ValueError(
            "SECRET_KEY environment variable is required in production. "
            'Generate with: python -c "import secrets; print(secrets.token_hex(32))"'
        )

    if not SECRET_KEY and not _is_testing:
        import warnings

        warnings.warn(
            "SECRET_KEY not set. Using default for development only. "
            "Set SECRET_KEY environment variable before deploying.",
            UserWarning,
        )
        SECRET_KEY = "dev-secret-key-change-in-production"

    if not SECRET_KEY:
        SECRET_KEY = "test-secret-key-placeholder"

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}

    # Ingest pipeline configuration
    INGEST_ENABLED = _coerce_bool(os.environ.get("INGEST_ENABLED"), default=True)
    INGEST_STAGING_CHUNK_SIZE = _coerce_int(os.environ.get("INGEST_STAGING_CHUNK_SIZE"), 50, minimum=1)
    INGEST_SAMPLE_ERROR_LIMIT = _coerce_int(os.environ.get("INGEST_SAMPLE_ERROR_LIMIT"), 10, minimum=1)
    INGEST_UPLOAD_SAMPLE_ERROR_LIMIT = _coerce_int(
        os.environ.get("INGEST_UPLOAD_SAMPLE_ERROR_LIMIT"), 5, minimum=1
    )
    INGEST_BATCH_LIST_LIMIT = _coerce_int(os.environ.get("INGEST_BATCH_LIST_LIMIT"), 20, minimum=1)
    INGEST_MAX_UPLOAD_MB = _coerce_int(os.environ.get("INGEST_MAX_UPLOAD_MB"), 25, minimum=1)
    INGEST_ALLOWED_EXTENSIONS = _parse_extension_list(os.environ.get("INGEST_ALLOWED_EXTENSIONS"))
    INGEST_UPLOAD_DIR = os.environ.get("INGEST_UPLOAD_DIR")

    # Reject oversized request bodies before they reach the ingest views
    MAX_CONTENT_LENGTH = INGEST_MAX_UPLOAD_MB * 1024 * 1024

    # Optional out-of-process worker for staging persisted uploads
    INGEST_WORKER_ENABLED = _coerce_bool(os.environ.get("INGEST_WORKER_ENABLED"), default=False)
    CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL")
    CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND")
    CELERY_SQLITE_PATH = os.environ.get("CELERY_SQLITE_PATH")
    CELERY_CONFIG = os.environ.get("CELERY_CONFIG")
    INGEST_TASK_TIME_LIMIT = _coerce_int(os.environ.get("INGEST_TASK_TIME_LIMIT"), 15 * 60, minimum=1)


class DevelopmentConfig(Config):
    DEBUG = True
    # Get the project root directory (parent of config directory)
    _config_dir = os.path.dirname(os.path.abspath(__file__))
    _project_root = os.path.dirname(_config_dir)
    instance_path = os.path.join(_project_root, "instance")

    if not os.path.exists(instance_path):
        os.makedirs(instance_path, exist_ok=True)

    # SQLite URI format: sqlite:///absolute/path (3 slashes for absolute path)
    db_path = os.path.join(instance_path, "drillops_dev.db").replace("\\", "/")
    db_uri = f"sqlite:///{db_path}"

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", db_uri)
    SQLALCHEMY_ECHO = _coerce_bool(os.environ.get("SQLALCHEMY_ECHO"), default=False)
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": 5,
            }
        }
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {}


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get("SECRET_KEY", "test-secret-key-for-testing-only")
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ECHO = False
    INGEST_ENABLED = True
    INGEST_WORKER_ENABLED = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {
            "check_same_thread": False,
            "timeout": 5,
        }
    }


class ProductionConfig(Config):
    DEBUG = False
    uri = os.environ.get("DATABASE_URL")
    if uri and uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = uri
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}
