#!/usr/bin/env python3
"""
Run the Exchange Lifecycle Engine API server.
"""

import uvicorn

from utils.config import Config


def main():
    """Start the web server."""
    config = Config.load()

    print(f"Starting Exchange Lifecycle Engine on http://{config.host}:{config.port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "web.app:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level,
    )


if __name__ == "__main__":
    main()
