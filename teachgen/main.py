from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from teachgen.utils.env import StudioConfig, ensure_env_loaded
from teachgen.routes.generation import router as generation_router
from teachgen.routes.search import router as search_router
from teachgen.routes.uploads import router as uploads_router
from teachgen.routes.forms import router as forms_router
from teachgen.routes.observability import router as observability_router
from teachgen.services.errors import (
    GenerationFailed,
    InvalidInput,
    RateLimited,
    RepeatedOutput,
    SourceTooLong,
)
from teachgen.services.generation_service import service
from teachgen.services.semantic_ranker import EmbeddingCorpus
from contextlib import asynccontextmanager
import os
import logging

logger = logging.getLogger("server")

RATE_LIMIT_DETAIL = (
    "The model's tokens-per-minute limit was reached. Wait about a minute, "
    "or shorten the content or request fewer questions, then try again."
)
REPEATED_OUTPUT_DETAIL = "Repeated duplicate outputs. Please try again."


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_env_loaded()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    config = StudioConfig.from_env()
    service.configure(config, EmbeddingCorpus.from_file(config.embeddings_path))
    yield


app = FastAPI(
    title="Teacher Studio",
    description="Lesson objectives, lesson plans, assessments, and standards search for teachers. "
                "See `/docs` for OpenAPI UI.",
    version="0.3.0",
    lifespan=lifespan,
)

# CORS
allowed_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(SourceTooLong)
async def source_too_long_handler(request: Request, exc: SourceTooLong):
    logger.info("Rejected %s: %d estimated tokens over %d", request.url.path, exc.estimate, exc.ceiling)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RepeatedOutput)
async def repeated_output_handler(request: Request, exc: RepeatedOutput):
    logger.warning("Repeated outputs on %s after %d attempts", request.url.path, exc.attempts)
    return JSONResponse(status_code=500, content={"detail": REPEATED_OUTPUT_DETAIL})


@app.exception_handler(GenerationFailed)
async def generation_failed_handler(request: Request, exc: GenerationFailed):
    if isinstance(exc, RateLimited):
        logger.warning("Provider rate limit on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=429, content={"detail": RATE_LIMIT_DETAIL})
    logger.error("Generation failed on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc) or "Text generation failed"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(generation_router)
app.include_router(search_router)
app.include_router(uploads_router)
app.include_router(forms_router)
app.include_router(observability_router)


@app.get("/health")
def health_check():
    checks: dict[str, object] = {"status": "ok"}
    checks["llm_provider"] = os.getenv("LLM_PROVIDER", "mock").strip().lower() or "mock"
    checks["standard_embeddings"] = len(service.corpus)
    if not len(service.corpus):
        checks["status"] = "degraded"
    return checks


@app.get("/test")
def test_route():
    return {"message": "Server is working"}
