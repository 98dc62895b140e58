"""Helper for running the Mealcal ASGI application locally."""

from __future__ import annotations

import os

import uvicorn


def main() -> None:
    """Serve the API with uvicorn using MEALCAL_SERVER_* overrides."""

    host = os.environ.get("MEALCAL_SERVER_HOST", "127.0.0.1")
    port = int(os.environ.get("MEALCAL_SERVER_PORT", "8000"))
    reload_enabled = os.environ.get("RELOAD") == "1"

    uvicorn.run(
        "mealcal.server.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
    )


if __name__ == "__main__":
    main()
