import os
from typing import Optional

# APP_ENV value -> settings module
ENVIRONMENTS = {
    "development": "config.development",
    "dev": "config.development",
    "local": "config.development",
    "production": "config.production",
    "prod": "config.production",
    "testing": "config.testing",
    "test": "config.testing",
}


def get_settings_module(env: Optional[str] = None) -> str:
    """Settings module for ``env`` (default: ``APP_ENV``, falling back to development).

    Unknown names raise ValueError.
    """
    name = (env if env is not None else os.getenv("APP_ENV", "development")).strip().lower() or "development"
    try:
        return ENVIRONMENTS[name]
    except KeyError:
        known = ", ".join(sorted({"development", "production", "testing"}))
        raise ValueError(f"Unknown APP_ENV {name!r}; expected one of: {known}") from None
