"""Run the console with Flask's built-in server: python -m admin_console"""

import logging
import os

from .app import app, config

logger = logging.getLogger(__name__)


def main() -> None:
    port = int(os.getenv("FLASK_PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    logger.info(f"Starting User Admin Console on http://localhost:{port}")
    logger.info(f"Users source: {config.users_url}")

    app.run(host="0.0.0.0", port=port, debug=debug)


if __name__ == "__main__":
    main()
