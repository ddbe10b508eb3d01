import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mockprep.api.routes import interview, system, voice_ws
from mockprep.core import config
from mockprep.core.errors import MockPrepError
from mockprep.core.logging_config import setup_logging
from mockprep.llm.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


# ============================================
# ✅ PROCESS WIRING
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)

    if config.RUN_MIGRATIONS:
        from mockprep.db.migrate import run_migrations
        run_migrations()
    else:
        from mockprep.db.init_db import init_db
        init_db()

    # One LLM client per process, injected into routes via get_llm_provider
    if getattr(app.state, "llm_provider", None) is None:
        try:
            app.state.llm_provider = OpenAIProvider(
                api_key=config.OPENAI_API_KEY,
                timeout=config.LLM_TIMEOUT_SECONDS,
            )
        except ValueError:
            logger.warning("OPENAI_API_KEY not configured - AI interview features disabled")
            app.state.llm_provider = None

    yield


app = FastAPI(title="MockPrep AI", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)


# ============================================
# ✅ ERROR RESPONSES
# ============================================

@app.exception_handler(MockPrepError)
async def mockprep_error_handler(request: Request, exc: MockPrepError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Validation failed on {request.url.path}: {len(exc.errors())} errors")
    return JSONResponse(status_code=400, content={"success": False, "error": "Missing required fields"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(interview.router)
app.include_router(voice_ws.router)
app.include_router(system.router)


@app.get("/")
def root():
    return {"status": "MockPrep API running"}
