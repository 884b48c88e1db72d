from pathlib import Path
import os
from dotenv import load_dotenv
from celery.schedules import crontab
from django.core.exceptions import ImproperlyConfigured

# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def env(name: str, default=None, *, required: bool = False):
    val = os.getenv(name, default)
    if required and (val is None or (isinstance(val, str) and val.strip() == "")):
        raise ImproperlyConfigured(f"Missing required environment variable: {name}")
    return val

def env_bool(name: str, default: bool = False) -> bool:
    return str(os.getenv(name, str(default))).lower() in {"1", "true", "yes", "on"}

def env_map(name: str) -> dict:
    """Parse "key=value,key=value" pairs, e.g. PIPELINE_PLAYLISTS=type_beat=PL123."""
    pairs = {}
    for item in os.getenv(name, "").split(","):
        key, sep, value = item.partition("=")
        if not sep:
            continue
        if not key.strip() or not value.strip():
            raise ImproperlyConfigured(f"Malformed entry {item!r} in {name}")
        pairs[key.strip()] = value.strip()
    return pairs

# -----------------------------------------------------
# Paths & basics
# -----------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

DEBUG = env_bool("DEBUG", False)

# In production (DEBUG=False) you must set a strong secret in .env
SECRET_KEY = env("DJANGO_SECRET_KEY", "dev-only-secret-key-change-me", required=not DEBUG)

# Keep hosts explicit by default
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost").split(",") if h.strip()]

# -----------------------------------------------------
# Applications
# -----------------------------------------------------
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third-party
    "rest_framework",

    # Local
    "publisher",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "beat_pipeline.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "beat_pipeline.wsgi.application"

# -----------------------------------------------------
# Database (Postgres if DB_* env vars set, else SQLite)
# -----------------------------------------------------
if os.getenv("DB_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": env("DB_NAME", "beat_pipeline"),
            "USER": env("DB_USER", "beat_user"),
            "PASSWORD": env("DB_PASSWORD", ""),
            "HOST": env("DB_HOST", "127.0.0.1"),
            "PORT": env("DB_PORT", "5432"),
            "CONN_MAX_AGE": int(env("DB_CONN_MAX_AGE", "60")),  # keep-alive
            "OPTIONS": {
                **({"sslmode": os.getenv("DB_SSLMODE")} if os.getenv("DB_SSLMODE") else {})
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# -----------------------------------------------------
# Password validation
# -----------------------------------------------------
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# -----------------------------------------------------
# Internationalization
# -----------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# -----------------------------------------------------
# Django REST Framework
# -----------------------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
        "rest_framework.renderers.BrowsableAPIRenderer" if DEBUG else "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
    ],
}

# -----------------------------------------------------
# Logging
# -----------------------------------------------------
LOG_LEVEL = env("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "publisher": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "celery": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}

# -----------------------------------------------------
# Celery / Redis
# -----------------------------------------------------
CELERY_BROKER_URL = env("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = env("CELERY_RESULT_BACKEND", "redis://127.0.0.1:6379/0")
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = int(env("CELERY_TASK_TIME_LIMIT", str(60 * 30)))  # seconds
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_ACKS_LATE = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1  # one stage at a time
CELERY_WORKER_CONCURRENCY = 1
# Render jobs sit in the broker for the backlog delay; keep them invisible to redelivery that long
CELERY_BROKER_TRANSPORT_OPTIONS = {
    "visibility_timeout": int(env("CELERY_VISIBILITY_TIMEOUT", str(60 * 60 * 2))),
}
CELERY_TIMEZONE = TIME_ZONE

CELERY_BEAT_SCHEDULE = {
    "start-pipeline": {
        "task": "publisher.tasks.start_pipeline",
        "schedule": crontab(
            minute=env("PIPELINE_CRON_MINUTE", "0"),
            hour=env("PIPELINE_CRON_HOUR", "0"),
            day_of_week=env("PIPELINE_CRON_DAYS", "mon,thu,sat"),
        ),
    },
}

# -----------------------------------------------------
# Pipeline
# -----------------------------------------------------
PIPELINE_RENDER_DELAY_SECONDS = int(env("PIPELINE_RENDER_DELAY_SECONDS", "600"))  # backlog buffer
PIPELINE_MAX_RETRIES = int(env("PIPELINE_MAX_RETRIES", "3"))
PIPELINE_RETRY_BACKOFF_MAX = int(env("PIPELINE_RETRY_BACKOFF_MAX", "600"))
PIPELINE_TAG_BUDGET = int(env("PIPELINE_TAG_BUDGET", "100"))
PIPELINE_COVER_IMAGES = env_map("PIPELINE_COVER_IMAGES")  # profile -> static cover path
PIPELINE_PLAYLISTS = env_map("PIPELINE_PLAYLISTS")        # profile -> playlist id

WORKSPACE_ROOT = Path(env("WORKSPACE_ROOT", str(BASE_DIR / "workspace")))

HTTP_TIMEOUT = float(env("HTTP_TIMEOUT", "120"))

# Song generation service (suno-api compatible)
SONG_API_URL = env("SONG_API_URL", "http://suno-api:3000")
SONG_MODEL = env("SONG_MODEL", "chirp-v3-5")

# Generative text / image service (OpenAI compatible)
TEXT_API_URL = env("TEXT_API_URL", "https://api.openai.com/v1")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")  # set in .env
TEXT_MODEL = env("TEXT_MODEL", "gpt-3.5-turbo")
IMAGE_MODEL = env("IMAGE_MODEL", "dall-e-3")
IMAGE_SIZE = env("IMAGE_SIZE", "1792x1024")

VIDEO_SIZE = env("VIDEO_SIZE", "1920x1080")
FFMPEG_BINARY = env("FFMPEG_BINARY", "ffmpeg")

# -----------------------------------------------------
# YouTube (token file written by the OAuth consent flow)
# -----------------------------------------------------
YOUTUBE_TOKEN_PATH = Path(env("YOUTUBE_TOKEN_PATH", str(BASE_DIR / "token.json")))
YOUTUBE_CREDENTIALS_PATH = Path(env("YOUTUBE_CREDENTIALS_PATH", str(BASE_DIR / "credentials.json")))
YOUTUBE_CATEGORY_ID = env("YOUTUBE_CATEGORY_ID", "10")  # Music
YOUTUBE_PRIVACY_STATUS = env("YOUTUBE_PRIVACY_STATUS", "private")
YOUTUBE_LICENSE = env("YOUTUBE_LICENSE", "youtube")

# -----------------------------------------------------
# Default PK type
# -----------------------------------------------------
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
