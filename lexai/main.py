from fastapi import FastAPI, Request

from .routers import argument, auth, law, pdf
from .db import Base, engine
from .errors import install_error_handlers
from lexai.config import settings
from lexai.utils.logging import logger

# Create all tables
logger.info("Creating database tables (if not exist)")
Base.metadata.create_all(bind=engine)

app = FastAPI(title="LexAI Legal Assistant (FastAPI)")
logger.info("FastAPI app instance created")

install_error_handlers(app)


@app.middleware("http")
async def rate_limit_headers(request: Request, call_next):
    response = await call_next(request)
    status = getattr(request.state, "rate_limit", None)
    if status is not None:
        response.headers.update(status.headers())
    return response


# Routers
app.include_router(auth.router)
app.include_router(pdf.router)
app.include_router(argument.router)
app.include_router(law.router)
logger.info("Routers registered: auth, pdf, argument, law")


@app.get(f"{settings.api_prefix}/health")
def health():
    logger.info("Health check endpoint called")
    return {"status": "ok"}
