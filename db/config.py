"""
db/config.py

Environment loading and database URL resolution shared by the API, the CLI
and Alembic.
"""

from __future__ import annotations

import os
from pathlib import Path

ENV_FILENAMES = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    if line.startswith("export "):
        line = line[len("export ") :].lstrip()
    if "=" not in line:
        return None

    key, value = line.split("=", 1)
    key = key.strip()
    value = value.strip()
    if value[:1] in {'"', "'"} and value.endswith(value[:1]) and len(value) > 1:
        value = value[1:-1]
    elif " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    if not key:
        return None
    return key, value


def load_env_files(project_root: Path | None = None) -> None:
    """
    Load KEY=VALUE pairs from `.env` then `.env.local` under the project root.

    Variables already present in the process environment win over file values.
    """

    root = project_root or Path(__file__).resolve().parents[1]
    for filename in ENV_FILENAMES:
        env_path = root / filename
        if not env_path.is_file():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is None:
                continue
            key, value = parsed
            os.environ.setdefault(key, value)


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite bare postgres URLs to the psycopg 3 driver form.
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix) :]
    return url


def resolve_database_url() -> str:
    """
    Resolve the database URL.

    Priority:
    1) DATABASE_URL
    2) CLOUD_DATABASE_URL when ENVIRONMENT is prod, production, staging or cloud
    3) LOCAL_DATABASE_URL
    """

    load_env_files()

    direct_url = os.getenv("DATABASE_URL")
    if direct_url:
        return normalize_postgres_url(direct_url)

    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    cloud_url = os.getenv("CLOUD_DATABASE_URL")
    if environment in CLOUD_ENVIRONMENTS and cloud_url:
        return normalize_postgres_url(cloud_url)

    local_url = os.getenv("LOCAL_DATABASE_URL")
    if local_url:
        return normalize_postgres_url(local_url)

    raise RuntimeError(
        "No database URL configured for price snapshots. Set DATABASE_URL, or "
        "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )
