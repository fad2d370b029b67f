"""Firefly Importer constants.

Environment variable names, built-in defaults and the keys that every
configuration document must define.
"""
CONFIG_FILE_ENV = "CONFIG_FILE"
DEFAULT_CONFIG_FILE = "./config.yaml"

MASTER_PASSWORD_ENV = "MASTER_PASSWORD"
MIN_MASTER_PASSWORD_LENGTH = 8

# env var -> (dotted document path, value kind)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "FIREFLY_BASE_URL": ("firefly.baseUrl", "str"),
    "FIREFLY_TOKEN_API": ("firefly.tokenApi", "str"),
    "CRON": ("cron", "str"),
    "SCRAPER_PARALLEL": ("scraper.parallel", "bool"),
    "SCRAPER_TIMEOUT": ("scraper.timeout", "int"),
    "SCRAPER_START_DATE": ("scraper.startDate", "str"),
    "LOG_LEVEL": ("log.level", "str"),
}

ACCOUNTS_KEY = "banks"
SUB_ACCOUNTS_KEY = "creditCards"
ACCOUNT_ENV_PREFIX = "ACCOUNT"

# ACCOUNT_<i>_<FIELD>
ACCOUNT_CREDENTIAL_FIELDS: dict[str, str] = {
    "USERNAME": "username",
    "PASSWORD": "password",
    "ID": "id",
    "USERCODE": "userCode",
}

# ACCOUNT_<i>_SUB_<j>_<FIELD>
SUB_ACCOUNT_CREDENTIAL_FIELDS: dict[str, str] = {
    "USERNAME": "username",
    "PASSWORD": "password",
    "ID": "id",
    "CARD6DIGITS": "card6Digits",
}

REQUIRED_KEYS = (
    "firefly",
    "firefly.baseUrl",
    "firefly.tokenApi",
    "banks",
)

DEFAULTS: dict = {
    "cron": None,
    "scraper": {
        "parallel": True,
        "timeout": None,
        "startDate": None,
    },
    "log": {
        "level": "info",
    },
}
