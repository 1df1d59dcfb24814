"""Global configuration and constants for the sync pipeline."""

from __future__ import annotations

import os
from typing import Final

DEFAULT_CDN_BASE_URL: Final = os.environ.get("KEYSYNC_CDN_URL", "https://cdn.better-i18n.com")
DEFAULT_USER_AGENT: Final = "keysync/0.3 (+https://pypi.org/project/keysync/)"
DEFAULT_TIMEOUT: Final = float(os.environ.get("KEYSYNC_TIMEOUT", "10"))  # seconds
DEFAULT_RETRIES: Final = int(os.environ.get("KEYSYNC_RETRIES", "2"))
DEFAULT_BACKOFF_FACTOR: Final = 0.2
DATA_DIR: Final = os.environ.get("KEYSYNC_DATA_DIR", ".keysync")

# Memory cache lifetimes (seconds)
MANIFEST_CACHE_TTL: Final = 300
MESSAGES_CACHE_TTL: Final = 300

DEFAULT_LOCALE: Final = os.environ.get("KEYSYNC_DEFAULT_LOCALE", "en")
PROJECT_CONFIG_FILENAME: Final = "i18n.config.json"

# Unused-key verification sample (--verbose)
VERIFY_SAMPLE_SIZE: Final = 10
VERIFY_SEED: Final = int(os.environ.get("KEYSYNC_VERIFY_SEED", "0"))
