"""
PATH: backend/settings/base.py

BASE SETTINGS (shared by dev + test + prod)

- django-environ for every tunable (typed defaults, optional .env file)
- Ledger role -> account code mapping (no magic codes inside strategies)
- Optional POS fallback codes (empty = fail-fast)
- Logging configuration for the ledger services
"""

from __future__ import annotations

from pathlib import Path

import environ

# -----------------------------------------
# BASE DIRECTORY
# -----------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# -----------------------------------------
# ENV (django-environ)
# -----------------------------------------
env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "UTC"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    ADMIN_PATH=(str, "admin/"),
    LOG_LEVEL=(str, "INFO"),
    # Ledger role codes (one env var per role)
    LEDGER_ROLE_ACCOUNTS_RECEIVABLE=(str, "1100"),
    LEDGER_ROLE_SALES_REVENUE=(str, "4000"),
    LEDGER_ROLE_SALES_TAX_PAYABLE=(str, "2100"),
    LEDGER_ROLE_ACCOUNTS_PAYABLE=(str, "2000"),
    LEDGER_ROLE_CASH_ON_HAND=(str, "1010"),
    # ROLE=code,ROLE=code (empty: POS posting fails fast on missing accounts)
    LEDGER_FALLBACK_ROLES=(dict, {}),
    LEDGER_REVERSAL_PREFIX_MATCH=(bool, False),
)

# -----------------------------------------
# LOAD .env
# -----------------------------------------
env_file_1 = BASE_DIR / ".env"
env_file_2 = BASE_DIR.parent / ".env"

if env_file_1.exists():
    env.read_env(str(env_file_1))
elif env_file_2.exists():
    env.read_env(str(env_file_2))

# -----------------------------------------
# CORE SECURITY
# -----------------------------------------
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

# -----------------------------------------
# I18N / TZ
# -----------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = (env("TIME_ZONE") or "UTC").strip()
USE_I18N = True
USE_TZ = True

# -----------------------------------------
# INSTALLED APPS
# -----------------------------------------
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "ledger.apps.LedgerConfig",
]

# -----------------------------------------
# MIDDLEWARE
# -----------------------------------------
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"
APPEND_SLASH = True

ADMIN_PATH = (env("ADMIN_PATH") or "admin/").strip()

# -----------------------------------------
# TEMPLATES (required for Django admin)
# -----------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(BASE_DIR / "templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# -----------------------------------------
# DATABASE
# -----------------------------------------
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# -----------------------------------------
# LEDGER
# -----------------------------------------
LEDGER_ACCOUNT_ROLES = {
    "ACCOUNTS_RECEIVABLE": env("LEDGER_ROLE_ACCOUNTS_RECEIVABLE"),
    "SALES_REVENUE": env("LEDGER_ROLE_SALES_REVENUE"),
    "SALES_TAX_PAYABLE": env("LEDGER_ROLE_SALES_TAX_PAYABLE"),
    "ACCOUNTS_PAYABLE": env("LEDGER_ROLE_ACCOUNTS_PAYABLE"),
    "CASH_ON_HAND": env("LEDGER_ROLE_CASH_ON_HAND"),
}
LEDGER_FALLBACK_ROLES = {
    str(k).strip().upper(): str(v).strip()
    for k, v in env.dict("LEDGER_FALLBACK_ROLES").items()
}
LEDGER_REVERSAL_PREFIX_MATCH = env.bool("LEDGER_REVERSAL_PREFIX_MATCH")

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOG_LEVEL = (env("LOG_LEVEL") or "INFO").strip().upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{asctime}] {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "ledger": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}

# -----------------------------------------
# STATIC FILES
# -----------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
