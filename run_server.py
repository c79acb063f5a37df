"""Entry point for running the FastAPI application with Uvicorn."""
from __future__ import annotations

import uvicorn

from app.config import get_settings


def main() -> None:
  settings = get_settings()
  uvicorn.run(
    "app.main:app",
    host=settings.server_host,
    port=settings.server_port,
    reload=settings.uvicorn_reload,
  )


if __name__ == "__main__":
  main()
