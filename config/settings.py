"""
Lodging – Django Settings (Infrastructure Only)
================================================
Django hosts the ORM-backed stores for the reservation core.
The engines are the authority — Django does not dictate structure.

Reservation rules are read from LODGING_* names by
ReservationConfig.from_settings(); anything not set keeps its default.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "lodging-dev-key-replace-before-deployment")

DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "adapters.django_store",
]

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "lodging": {
            "handlers": ["console"],
            "level": os.environ.get("LODGING_LOG_LEVEL", "INFO"),
        },
    },
}

# ── Payment gateway ───────────────────────────────────────────
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")

# ── Reservation rules ─────────────────────────────────────────
LODGING_TAX_RATE = 0.12
LODGING_FULL_REFUND_HOURS = 48
LODGING_PARTIAL_REFUND_HOURS = 24
LODGING_CHECK_IN_WINDOW_HOURS = 24
LODGING_CURRENCY = os.environ.get("LODGING_CURRENCY", "inr")
