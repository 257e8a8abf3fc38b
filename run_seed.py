import asyncio
import logging

from app.core.config import get_settings
from app.core.db import close_engine, get_session_factory, init_engine
from app.core.logging import configure_logging
from app.infra.db.seed import seed_demo_company, seed_demo_employees

logger = logging.getLogger("app.seed")


async def main() -> None:
    configure_logging(get_settings())
    engine = init_engine()
    try:
        session_factory = get_session_factory()
        async with session_factory() as session:
            company = await seed_demo_company(session)
            created = await seed_demo_employees(session, company)
            await session.commit()
        logger.info(
            "Seeded company %s (slug=%s) with %d new employee(s)",
            company.name,
            company.slug,
            created,
        )
    finally:
        await close_engine(engine)


if __name__ == "__main__":
    asyncio.run(main())
