import asyncio

from triplecheck.core.logger import logger
from triplecheck.database.base import engine, init_db


async def main():
    await init_db()
    await engine.dispose()
    logger.info("✅ Database initialized (properties table)")


if __name__ == "__main__":
    asyncio.run(main())
