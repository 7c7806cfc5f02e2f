"""Entry point for running the social sync service with Uvicorn."""
from __future__ import annotations

import os

import uvicorn


def main() -> None:
  host = os.getenv("FITSOCIAL_HOST", "127.0.0.1")
  port = int(os.getenv("FITSOCIAL_PORT", "8000"))
  reload = os.getenv("UVICORN_RELOAD", "false").lower() == "true"
  uvicorn.run("fitsocial.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
  main()
