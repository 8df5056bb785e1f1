import os
import tempfile

import sentry_sdk
import structlog
from django.core.management.utils import get_random_secret_key
from sentry_sdk.integrations.django import DjangoIntegration

from elibro import get_version

DEFAULT_AUTO_FIELD = "django.db.models.AutoField"

# Build paths inside the project like this: os.path.join(SITE_ROOT_DIR, ...)
ELIBRO_APP_DIR = os.path.abspath(os.path.dirname(__file__))
SITE_ROOT_DIR = os.path.dirname(ELIBRO_APP_DIR)

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", get_random_secret_key())

ELIBRO_ENVIRONMENT = os.environ.get("ELIBRO_ENVIRONMENT", "development")

DEBUG = False
ALLOWED_HOSTS = []

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.getenv("POSTGRESQL_DB", "elibro"),
        "USER": os.getenv("POSTGRESQL_USER", "elibro"),
        "PASSWORD": os.getenv("POSTGRESQL_PW"),
        "HOST": os.getenv("POSTGRESQL_HOST", "localhost"),
        "PORT": os.getenv("POSTGRESQL_PORT", "5432"),
        # The sync job opens and closes its own connection
        "CONN_MAX_AGE": 0,
    }
}

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "catalog.apps.CatalogConfig",
]

CATALOG_SYNC = {
    "CATALOG_URL": os.environ.get(
        "GUTENBERG_CATALOG_URL",
        "https://gutenberg.org/cache/epub/feeds/rdf-files.tar.bz2",
    ),
    "ARCHIVE_NAME": "catalog.tar.bz2",
    "CACHE_FOLDER": "cache/epub",
    "WORK_DIR": os.environ.get("CATALOG_WORK_DIR", tempfile.gettempdir()),
    "DOWNLOAD_TIMEOUT": int(os.environ.get("CATALOG_DOWNLOAD_TIMEOUT", "60")),
    "CONTINUE_ON_ERROR": os.environ.get("CATALOG_CONTINUE_ON_ERROR", "").lower()
    in ("1", "true", "yes", "on"),
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "long": {
            "format": "[{asctime} {levelname} {name}:{lineno}] {message}",
            "datefmt": "%Y-%m-%dT%H:%M:%S",
            "style": "{",
        },
        "structlog_json": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.JSONRenderer(),
        },
        "structlog_console": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.dev.ConsoleRenderer(colors=False),
        },
    },
    "handlers": {
        "stream": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "long",
        },
        "null": {"level": "INFO", "class": "logging.NullHandler"},
        "structlog_console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "structlog_console",
        },
    },
    "loggers": {
        "django": {"handlers": ["stream"], "level": "WARNING"},
        "catalog": {"handlers": ["stream"], "level": "INFO"},
        "structlog": {
            "handlers": ["structlog_console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}

# Persistent log files, one for everything and one for errors only
ELIBRO_LOG_DIR = os.environ.get("ELIBRO_LOG_DIR")
if ELIBRO_LOG_DIR:
    LOGGING["handlers"]["structlog_file"] = {
        "class": "logging.handlers.TimedRotatingFileHandler",
        "level": "INFO",
        "formatter": "structlog_json",
        "filename": os.path.join(ELIBRO_LOG_DIR, "elibro-json.log"),
        "when": "D",
        "backupCount": 14,
    }
    LOGGING["handlers"]["structlog_error_file"] = {
        "class": "logging.handlers.TimedRotatingFileHandler",
        "level": "ERROR",
        "formatter": "structlog_json",
        "filename": os.path.join(ELIBRO_LOG_DIR, "elibro-error.log"),
        "when": "D",
        "backupCount": 14,
    }
    LOGGING["loggers"]["structlog"]["handlers"] += [
        "structlog_file",
        "structlog_error_file",
    ]

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

SENTRY_BACKEND_DSN = os.environ.get("SENTRY_BACKEND_DSN", "")

APPLICATION_VERSION = get_version()

sentry_sdk.init(
    dsn=SENTRY_BACKEND_DSN,
    environment=ELIBRO_ENVIRONMENT,
    release=APPLICATION_VERSION,
    integrations=[DjangoIntegration()],
)
