import time
from contextlib import asynccontextmanager
from asset_sync.log_config import logger

@asynccontextmanager
async def log_duration(label: str, **extra):
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        logger.info(f"{label} finished", extra={**extra, "duration": round(duration, 3), "step": label})
