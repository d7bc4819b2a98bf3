"""Central version identifier for the marks overlay package."""
from __future__ import annotations

import os
from typing import Optional

__all__ = ["__version__", "is_dev_build", "DEV_MODE_ENV_VAR"]

__version__ = "0.3.1-dev"
DEV_MODE_ENV_VAR = "MARKS_OVERLAY_DEV_MODE"


def _coerce_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    token = value.strip().lower()
    if token in {"1", "true", "yes", "on"}:
        return True
    if token in {"0", "false", "no", "off"}:
        return False
    return None


def is_dev_build(version: Optional[str] = None) -> bool:
    """Return True when logging should default to DEBUG (see ``configure_logging``).

    ``MARKS_OVERLAY_DEV_MODE`` wins when set to a recognised boolean;
    otherwise any ``dev`` segment in the version identifier marks a dev build.
    """

    override = _coerce_bool(os.getenv(DEV_MODE_ENV_VAR))
    if override is not None:
        return override
    identifier = (version or __version__ or "").strip().lower()
    segments = identifier.replace(".", "-").split("-")
    return any(segment == "dev" or (segment.startswith("dev") and segment[3:].isdigit()) for segment in segments)
