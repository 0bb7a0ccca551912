from __future__ import annotations

import uvicorn

from gdpdu_export.api.app import app


def start_api() -> None:
    host = "127.0.0.1"
    base_port = 8765
    # Try a small range of ports to avoid EADDRINUSE
    for p in range(base_port, base_port + 10):
        try:
            uvicorn.run(app, host=host, port=p, log_level="info")
            break
        except OSError:
            continue


if __name__ == "__main__":
    start_api()
