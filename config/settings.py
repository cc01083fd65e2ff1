"""
Fulfillment – Django Settings
=============================
Django is the framework container for the fulfillment engine:
ORM + transactions + migrations + thin JSON views.

Environment variables override development defaults. Engine-level
knobs live in the single FULFILLMENT dict at the bottom.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "fulfillment-dev-key-replace-before-deployment"
)

DEBUG = _env_bool("DJANGO_DEBUG", True)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    # ── Fulfillment modules (leaves first) ────────────────
    "engines.catalog",
    "engines.inventory",
    "engines.promotion",
    "engines.pricing",
    "engines.fulfillment",
]

# ── Middleware ────────────────────────────────────────────────
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

# ── URL & WSGI ────────────────────────────────────────────────
ROOT_URLCONF = "config.urls"

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production points FULFILLMENT_DB_* at a
# server database with row-level locking (PostgreSQL / MySQL).
DATABASES = {
    "default": {
        "ENGINE": os.environ.get("FULFILLMENT_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("FULFILLMENT_DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("FULFILLMENT_DB_USER", ""),
        "PASSWORD": os.environ.get("FULFILLMENT_DB_PASSWORD", ""),
        "HOST": os.environ.get("FULFILLMENT_DB_HOST", ""),
        "PORT": os.environ.get("FULFILLMENT_DB_PORT", ""),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ── Default Primary Key ──────────────────────────────────────
# Catalog and order tables declare their own keys. Django fallback only.
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Email (order confirmations) ──────────────────────────────
EMAIL_BACKEND = os.environ.get(
    "DJANGO_EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend"
)
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "orders@furniture.local")

# ── Logging ───────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("FULFILLMENT_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "fulfillment": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": True,
        },
    },
}

# ── Fulfillment engine ────────────────────────────────────────
FULFILLMENT = {
    "CURRENCY": os.environ.get("FULFILLMENT_CURRENCY", "LKR"),
    # Zone Charge Table: delivery_zone_id → flat charge.
    "DELIVERY_ZONES": {
        "inside_colombo": "300.00",
        "outside_colombo": "600.00",
    },
    "ORDER_ID_PREFIXES": {
        "pos": "TXN",
        "ecommerce": "ECOM",
        "purchase_receipt": "GRN",
        "purchase_order": "PO",
        "refund": "REFUND",
    },
    "POS_PAYMENT_METHODS": ("cash", "card", "bank_transfer", "mixed"),
    "ECOMMERCE_PAYMENT_METHODS": ("cash_on_delivery", "bank_transfer"),
    "REFUND_METHODS": ("cash", "card", "bank_transfer", "store_credit"),
    # Development API keys → (actor_id, role). Replace before deployment.
    "API_KEYS": {
        "dev-admin-key": ("live-admin-user", "admin"),
        "dev-cashier-key": ("live-cashier-user", "cashier"),
        "dev-storekeeper-key": ("live-storekeeper-user", "storekeeper"),
        "dev-customer-key": ("live-customer-user", "customer"),
    },
}
