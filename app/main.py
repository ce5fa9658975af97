"""ASGI entry point: ``uvicorn app.main:app`` or ``python -m app.main``."""

import uvicorn

from app.core.app_factory import create_app
from app.core.config import settings

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.app.host, port=settings.app.port, log_config=None)
