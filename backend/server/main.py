"""
Development server entry point.

Responsibilities:
- Load .env
- Validate configuration before binding the port
- Run the ASGI app under uvicorn

Run from backend/: `python -m server.main`
"""

from __future__ import annotations

import os

import uvicorn
from dotenv import load_dotenv

from config import AppConfig


def main() -> None:
    load_dotenv()
    config = AppConfig.load_from_env()

    uvicorn.run(
        "server.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        log_level=config.log_level.lower(),
        reload=config.env == "dev",
    )


if __name__ == "__main__":
    main()
