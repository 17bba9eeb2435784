"""WSGI entrypoint for deployment on various platforms."""
import os

import uvicorn

from main import app  # noqa: F401

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    log_level = os.environ.get("LOG_LEVEL", "info").lower()

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        log_level=log_level,
        access_log=False,  # request logging middleware already logs each request
    )
