"""
Job Automation API - FastAPI Backend
Exposes scraping, applying and platform checks over HTTP.
Protected routes require the X-API-Key header unless DISABLE_API_AUTH is set.
"""

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional, Union

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import SUPPORTED_PLATFORMS, config, get_config
from api.logging_config import setup_logging
from api.stats import dashboard_metrics
from core.errors import AutomationError, ErrorCategory
from core.models import ApplicantProfile, JobFilter, JobStatus
from core.orchestrator import JobOrchestrator

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"
START_TIME = datetime.now()

# Error categories that are the caller's fault
CLIENT_ERROR_CATEGORIES = (ErrorCategory.VALIDATION,)


# === Lifespan Management ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    setup_logging("", get_config().LOG_DIR)
    logger.info("Starting Job Automation API...")
    orchestrator = JobOrchestrator(get_config())
    await orchestrator.start()
    app.state.orchestrator = orchestrator

    yield

    logger.info("Shutting down Job Automation API...")
    await orchestrator.shutdown()


app = FastAPI(
    title="Job Automation API",
    description="Scrapes job boards and applies to jobs through browser automation",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if config.DEBUG else None,
    redoc_url="/redoc" if config.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-API-Key"],
)


# === Request Logging Middleware ===

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    start_time = datetime.now()
    response = await call_next(request)
    duration = (datetime.now() - start_time).total_seconds() * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration:.2f}ms)")
    return response


# === Errors ===

def error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"status": "error", "error": error})


@app.exception_handler(AutomationError)
async def automation_error_handler(request: Request, exc: AutomationError):
    status_code = 400 if exc.category in CLIENT_ERROR_CATEGORIES else 500
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return error_response(status_code, exc.code, str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    codes = {401: "UNAUTHORIZED", 403: "FORBIDDEN", 404: "NOT_FOUND"}
    return error_response(exc.status_code, codes.get(exc.status_code, "HTTP_ERROR"), str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return error_response(400, "VALIDATION_ERROR", "Validation failed", details)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = str(exc) if get_config().DEBUG else "Internal server error"
    return error_response(500, "INTERNAL_SERVER_ERROR", message)


# === Dependencies ===

async def require_api_key(x_api_key: Optional[str] = Header(default=None)):
    """Check the X-API-Key header against API_KEY."""
    settings = get_config()
    if settings.DISABLE_API_AUTH:
        return
    if not settings.API_KEY or not x_api_key or not secrets.compare_digest(x_api_key, settings.API_KEY):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing API key")


def get_orchestrator(request: Request) -> JobOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Service is starting")
    return orchestrator


# === Pydantic Models with Validation ===

class ScrapeRequest(BaseModel):
    platform: str
    keywords: Union[str, List[str]]
    country: Optional[str] = Field(default=None, max_length=100)
    jobType: Optional[str] = Field(default="Remote", max_length=50)
    seniority: Optional[str] = Field(default=None, max_length=50)
    quantity: Optional[int] = Field(default=None, ge=1, le=100)

    @validator('platform')
    def validate_platform(cls, v):
        v = v.lower()
        if v not in SUPPORTED_PLATFORMS:
            raise ValueError(f"Platform must be one of: {', '.join(SUPPORTED_PLATFORMS)}")
        return v

    @validator('keywords')
    def validate_keywords(cls, v):
        if isinstance(v, list):
            v = [str(k).strip() for k in v if str(k).strip()]
        if not v or (isinstance(v, str) and not v.strip()):
            raise ValueError("Keywords are required")
        return v


class ProfileModel(BaseModel):
    full_name: str = Field(default="", max_length=200)
    email: str = Field(default="", max_length=200)
    phone: str = Field(default="", max_length=50)
    cover_letter: str = Field(default="", max_length=5000)
    resume_path: Optional[str] = None

    def to_profile(self) -> ApplicantProfile:
        return ApplicantProfile(**self.dict())


class JobModel(BaseModel):
    id: str = Field(..., min_length=1)
    url: str = Field(..., max_length=1000)
    platform: Optional[str] = None
    title: str = ""
    company: str = ""

    @validator('url')
    def validate_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError('Valid URL is required')
        return v

    @validator('platform')
    def validate_platform(cls, v):
        if v is not None and v.lower() not in SUPPORTED_PLATFORMS:
            raise ValueError(f"Platform must be one of: {', '.join(SUPPORTED_PLATFORMS)}")
        return v.lower() if v else v


class ApplyRequest(BaseModel):
    jobs: List[JobModel] = Field(..., min_length=1)
    profile: Optional[ProfileModel] = None


class ApplyByFilterRequest(BaseModel):
    platform: Optional[str] = None
    dateFrom: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}")
    dateTo: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}")
    status: Optional[str] = JobStatus.PENDING.value
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)
    profile: Optional[ProfileModel] = None

    @validator('platform')
    def validate_platform(cls, v):
        if v is not None and v.lower() not in SUPPORTED_PLATFORMS:
            raise ValueError(f"Platform must be one of: {', '.join(SUPPORTED_PLATFORMS)}")
        return v.lower() if v else v

    def to_filter(self) -> JobFilter:
        return JobFilter(
            platform=self.platform,
            status=self.status,
            date_from=self.dateFrom,
            date_to=self.dateTo,
            page=self.page,
            limit=self.limit,
        )


def _profile(model: Optional[ProfileModel]) -> Optional[ApplicantProfile]:
    return model.to_profile() if model else None


# === Status Endpoints ===

@app.get("/health")
async def health():
    """Liveness check."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": API_VERSION,
    }


@app.get("/api/status")
async def get_status(orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Service status: database, browsers, notifications."""
    data = await orchestrator.status()
    data.update({
        "service": "job-automation-api",
        "uptime": int((datetime.now() - START_TIME).total_seconds()),
        "startTime": START_TIME.isoformat(),
        "time": datetime.now().isoformat(),
    })
    return {"status": "success", "data": data}


@app.post("/api/status/restart", dependencies=[Depends(require_api_key)])
async def restart_browsers(orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Close every browser; they relaunch on next request."""
    closed = await orchestrator.restart_browsers()
    return {
        "status": "success",
        "message": "All browsers have been closed. They will be restarted on next request.",
        "closed": closed,
    }


# === Scraping ===

@app.post("/api/scrape-jobs", dependencies=[Depends(require_api_key)])
async def scrape_jobs(request: ScrapeRequest, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Scrape one platform's search results into the job store."""
    result = await orchestrator.scrape(
        request.platform,
        request.keywords,
        country=request.country,
        job_type=request.jobType or "Remote",
        seniority=request.seniority,
        quantity=request.quantity,
    )
    return {"status": "success", "data": result.to_dict()}


# === Applying ===

@app.post("/api/apply-jobs", dependencies=[Depends(require_api_key)])
async def apply_jobs(request: ApplyRequest, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Apply to the given jobs one after another."""
    logger.info(f"Received request to apply to {len(request.jobs)} jobs")
    batch = await orchestrator.apply_to_many([job.dict() for job in request.jobs], _profile(request.profile))
    return {"status": "success", "data": batch.to_dict()}


@app.post("/api/apply-by-filter", dependencies=[Depends(require_api_key)])
async def apply_by_filter(request: ApplyByFilterRequest, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Apply to stored jobs matching the filter."""
    batch = await orchestrator.apply_by_filter(request.to_filter(), _profile(request.profile))
    return {"status": "success", "data": batch.to_dict()}


# === Platforms ===

@app.get("/api/platforms")
async def get_platforms(orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Get list of supported job platforms."""
    platforms = []
    for platform in SUPPORTED_PLATFORMS:
        adapter = orchestrator.create_adapter(platform)
        platforms.append({
            "id": platform,
            "name": adapter.display_name,
            "requiresLogin": adapter.requires_login,
            "credentialsConfigured": adapter.credentials.complete,
            "browserRunning": orchestrator.pool.has_session(platform),
        })
    return {"status": "success", "data": platforms}


@app.post("/api/platforms/{platform}/test", dependencies=[Depends(require_api_key)])
async def test_platform(platform: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Open the platform and check login; never applies."""
    result = await orchestrator.test_platform(platform)
    return {"status": result.status, "data": result.to_dict()}


# === Stats ===

@app.get("/api/stats", dependencies=[Depends(require_api_key)])
async def get_stats(
    platform: Optional[str] = None,
    dateFrom: Optional[str] = None,
    dateTo: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=30, ge=1, le=100),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Daily application counts per platform."""
    stats = await orchestrator.store.get_application_stats(
        platform=platform.lower() if platform else None,
        date_from=dateFrom,
        date_to=dateTo,
        page=page,
        limit=limit,
    )
    return {"status": "success", "data": stats}


@app.get("/api/stats/dashboard", dependencies=[Depends(require_api_key)])
async def get_dashboard(orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Last 30 days: totals, average daily success rate, trend and best/worst platform."""
    return {"status": "success", "data": await dashboard_metrics(orchestrator.store)}
