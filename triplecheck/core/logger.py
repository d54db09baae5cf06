import sys
from loguru import logger
from triplecheck.core.config import settings

logger.remove()
logger.add(sys.stdout, level=settings.LOG_LEVEL)
if settings.LOG_FILE:
    logger.add(settings.LOG_FILE, rotation="50 MB", retention="10 days", level="INFO")
