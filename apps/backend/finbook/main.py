import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.log_config import configure_logging
from .routers import register_routers

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Hidden-Count", "Content-Disposition"],
)


@app.get("/health")
def health():
    return {"status": "ok"}


register_routers(app)
logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)
