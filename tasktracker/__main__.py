import logging

import uvicorn

from tasktracker import config
from tasktracker.logging_setup import setup_logging
from tasktracker.main import create_app

logger = logging.getLogger("tasktracker")


def main():
    setup_logging(config.LOG_LEVEL, config.LOG_DIR)
    app = create_app()
    logger.info("Server is running on http://%s:%s", config.HOST, config.PORT)
    # uvicorn owns SIGINT/SIGTERM and runs the app's shutdown hook
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_config=None)


if __name__ == "__main__":
    main()
