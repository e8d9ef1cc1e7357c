from __future__ import annotations

import uvicorn

from backend.pixelpoll.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "backend.pixelpoll.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
