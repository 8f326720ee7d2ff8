from fastapi import FastAPI

from app.api.routes import api_router
from app.core.config import settings
from app.core.logging_config import setup_logging

setup_logging(settings.LOG_LEVEL)

app = FastAPI(title="Immigration Help Bot")

app.include_router(api_router)
