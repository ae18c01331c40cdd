# app.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.assistant.routes import router as assistant_router, composer
from config.logging import get_logger
from config.settings import settings

log = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(
        "Startup: kb_entries=%d embed_model=%s model=%s",
        len(composer.knowledge), settings.EMBED_MODEL, settings.OPENAI_MODEL,
    )
    if not settings.OPENAI_API_KEY:
        log.warning("OPENAI_API_KEY missing. Requests will fail until environment is set.")

    # Optional: embed the KB before the first request instead of during it
    if settings.WARM_KB_ON_STARTUP:
        try:
            await composer.cache.get_kb_embeddings()
        except Exception as e:
            log.warning("KB warm-up skipped: %s", e)
    yield


# Initialize FastAPI app
app = FastAPI(title="Lumen Portfolio Assistant", version="1.0.0", lifespan=lifespan)

# CORS middleware (the widget is embedded from other origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_headers=["*"],
    allow_methods=["*"],
)

# Health check endpoint
@app.get("/health")
def health():
    return {"status": "ok"}

# Assistant routes
app.include_router(assistant_router, prefix="/api", tags=["Assistant"])
