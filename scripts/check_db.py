# scripts/check_db.py
import sys
from pathlib import Path

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio

from audit_service.config.settings import get_settings
from audit_service.infrastructure.database.session import build_engine, create_schema, ping


async def check_connection():
    settings = get_settings()
    engine = build_engine(settings)
    try:
        await ping(engine)
        print("DB Connected:", settings.database_url.split("@")[-1])
        if settings.database_create_schema:
            await create_schema(engine)
            print("Schema ready")
    finally:
        await engine.dispose()


asyncio.run(check_connection())
