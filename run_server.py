import os

import uvicorn

from wbgt_service.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="wbgt_server")
    logger.info("Starting WBGT signal service", extra={"store_backend": settings.store_backend})

    uvicorn.run(
        "wbgt_service.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
