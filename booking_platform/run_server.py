"""
Serve the booking platform with uvicorn.

Usage:
  HOST=0.0.0.0 PORT=8000 python -m booking_platform.run_server
  TLS_CERT_FILE=cert.pem TLS_KEY_FILE=key.pem python -m booking_platform.run_server
"""

from __future__ import annotations

import logging
import os

import uvicorn


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name, default)
    return value if value not in (None, "") else None


def main() -> None:
    logging.basicConfig(
        level=_get_env("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    certfile = _get_env("TLS_CERT_FILE")
    keyfile = _get_env("TLS_KEY_FILE")

    config = uvicorn.Config(
        "booking_platform.main:app",
        host=_get_env("HOST", "127.0.0.1"),
        port=int(_get_env("PORT", "8000")),
        ssl_certfile=certfile if certfile and keyfile else None,
        ssl_keyfile=keyfile if certfile and keyfile else None,
        proxy_headers=True,
        forwarded_allow_ips=_get_env("FORWARDED_ALLOW_IPS", "127.0.0.1"),
    )
    server = uvicorn.Server(config)
    server.run()


if __name__ == "__main__":
    main()
