from fastapi import FastAPI
from contextlib import asynccontextmanager

from app.core.config import get_settings
from app.core.logging import setup_logging
from app.routers import analyze, chat, coach, rag
from app.services.container import build_services


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: build clients once and share them through app.state
    settings = get_settings()
    setup_logging(settings)
    app.state.services = build_services(settings)
    yield
    # Shutdown: finish pending memory writes, close clients
    await app.state.services.aclose()


app = FastAPI(
    title="Koval Deep AI API",
    description="Freediving coaching chat grounded in Daniel Koval's methodology",
    version="1.0.0",
    lifespan=lifespan,
)
# Avoid 307 redirects for trailing slash (e.g. /chat/ -> /chat) that can cause redirect loops behind nginx
app.router.redirect_slashes = False

# Include routers
app.include_router(chat.router, prefix="/chat", tags=["Chat"])
app.include_router(coach.router, prefix="/coach", tags=["Coach"])
app.include_router(analyze.router, prefix="/analyze", tags=["Analysis"])
app.include_router(rag.router, prefix="/rag", tags=["RAG"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
