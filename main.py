import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import structlog
import uvicorn

from database import check_connection
from errors import register_error_handlers
from routers import invoices_router, payments_router
from utils.logging import add_context, clear_context, configure_logging

# Load .env
load_dotenv()
configure_logging()

logger = structlog.get_logger(__name__)

# App instance
app = FastAPI(title="Property Billing API")

# CORS
origins = [origin for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(invoices_router)
app.include_router(payments_router)


# Per-request log context
@app.middleware("http")
async def log_context_middleware(request: Request, call_next):
    clear_context()
    add_context(method=request.method, path=request.url.path)
    try:
        return await call_next(request)
    finally:
        clear_context()


@app.get("/health")
def health():
    return {"status": "ok", "database": "up" if check_connection() else "down"}


if __name__ == "__main__":
    port = int(os.getenv("PORT", 10000))
    logger.info("Starting billing API", port=port)
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
