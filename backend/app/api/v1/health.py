r"""backend\app\api\v1\health.py

Health check endpoints.

These endpoints can be used by orchestrators and load balancers to verify
that the service is running.  A simple GET request to `/api/v1/health`
returns a JSON payload with status information; the readiness variant also
reports whether the thresholds file and audit log directory are usable.
"""

import os

from fastapi import APIRouter

from ...core.config import get_settings, thresholds_path

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Return a basic health indicator."""
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, object]:
    """Report whether configuration and audit storage are in place.

    A missing thresholds file is not an error; the built-in defaults apply.
    """

    settings = get_settings()
    data_dir = settings.data_dir
    return {
        "status": "ok",
        "thresholdsFile": os.path.exists(thresholds_path(settings.config_dir)),
        "auditLogWritable": os.access(data_dir, os.W_OK) if os.path.isdir(data_dir) else os.access(".", os.W_OK),
    }
