"""Application settings loaded from environment variables or .env."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_files() -> list[Path]:
    """Find .env files to load, searching upward from CWD and in the package dir.

    Checks (in priority order, last wins in pydantic-settings):
    1. The formpulse package directory's parent
    2. The first .env found walking up from the current working directory
    """
    candidates: list[Path] = []

    pkg_env = Path(__file__).resolve().parent.parent / ".env"
    if pkg_env.is_file():
        candidates.append(pkg_env)

    cwd = Path.cwd().resolve()
    for parent in [cwd, *cwd.parents]:
        env_path = parent / ".env"
        if env_path.is_file() and env_path not in candidates:
            candidates.append(env_path)
            break  # stop at first match going upward

    return candidates


class FormpulseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FORMPULSE_",
        env_file=_find_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Forms API and push channel
    api_base: str = "http://localhost:8080/api"
    ws_base: str = "ws://localhost:8080/ws"
    request_timeout: float = 10.0

    # Reference server
    db_url: str = "sqlite://"  # in-memory; pass a sqlite:///path URL to keep data
    cors_origin: str = "*"
    port: int = 8080

    # Logging
    log_dir: Path | None = None


def load_settings(**overrides: object) -> FormpulseSettings:
    """Load settings with optional CLI overrides.

    ``None`` overrides are ignored so unset CLI options fall through to the
    environment.  Base URLs lose any trailing slash.
    """
    overrides = {k: v for k, v in overrides.items() if v is not None}
    for key in ("api_base", "ws_base"):
        value = overrides.get(key)
        if isinstance(value, str):
            overrides[key] = value.rstrip("/")

    settings = FormpulseSettings(**overrides)  # type: ignore[arg-type]

    updates = {
        key: getattr(settings, key).rstrip("/")
        for key in ("api_base", "ws_base")
        if getattr(settings, key).endswith("/")
    }
    if not updates:
        return settings
    return settings.model_copy(update=updates)
