"""Run the server: python -m filedrop"""
import logging

import uvicorn

from filedrop.config import settings
from filedrop.services.network import get_local_ip

logger = logging.getLogger("filedrop")


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Server starting...")
    logger.info("Local access:   http://localhost:%d", settings.API_PORT)
    logger.info("Network access: http://%s:%d", get_local_ip(), settings.API_PORT)

    uvicorn.run(
        "filedrop.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
