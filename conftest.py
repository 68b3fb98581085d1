"""Root conftest: seed the environment before dm_service.config is imported."""
from __future__ import annotations

import os
from pathlib import Path

_ENV_FILE = Path(__file__).resolve().parent / ".env.test"

# Fallbacks for required settings when .env.test is absent
_DEFAULTS = {
    "POSTGRES_USER": "dm",
    "POSTGRES_PASSWORD": "dm",
    "POSTGRES_DB": "dm_test",
    "JWT_SECRET": "test-secret-with-at-least-32-bytes!!",
    "JWT_VERIFY_MODE": "hs256",
}


def _read_env_file(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip('"')
    return values


_env = dict(_DEFAULTS)
if _ENV_FILE.exists():
    _env.update(_read_env_file(_ENV_FILE))

for _key, _value in _env.items():
    os.environ.setdefault(_key, _value)
