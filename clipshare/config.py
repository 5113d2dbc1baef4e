"""Project-level configuration and path helpers."""

import os
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_UPLOADS_DIR = PROJECT_ROOT / "uploads"
CERTS_DIR = PROJECT_ROOT / "certs"
CERT_PATH = CERTS_DIR / "cert.pem"
KEY_PATH = CERTS_DIR / "key.pem"

MIB = 1024 * 1024
DEFAULT_MAX_UPLOAD_BYTES = 50 * MIB
DEFAULT_MAX_PAYLOAD_BYTES = 50 * MIB
DEFAULT_MAX_PENDING_FRAMES = 1000
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


PathLike = Union[str, Path]


def resolve_uploads_dir(env_value: PathLike | None = None) -> Path:
    """Resolve CLIPSHARE_UPLOADS_DIR to an absolute path."""
    if not env_value:
        return DEFAULT_UPLOADS_DIR

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def env_int(name: str, default: int) -> int:
    """Read a positive integer from the environment."""
    raw = os.getenv(name)
    if not raw:
        return default
    value = int(raw)
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def cors_origins(env_value: str | None = None) -> list[str]:
    """Split CORS_ORIGINS into a list, falling back to local dev origins."""
    if env_value is None:
        env_value = os.getenv("CORS_ORIGINS")
    if not env_value:
        return list(DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in env_value.split(",") if origin.strip()]


def tls_files(enabled: bool) -> tuple[Path, Path] | None:
    """Return (cert, key) when TLS is requested and both files exist."""
    if enabled and CERT_PATH.exists() and KEY_PATH.exists():
        return CERT_PATH, KEY_PATH
    return None
