"""
HTTP endpoints for the detection dashboard.

Exposes the three operations the presentation layer needs (analyze, list,
get) plus a results summary and a health check.
"""

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
import logging
from datetime import datetime, timezone

from .. import __version__
from ..data.types import AnalysisOverrides, DetectionStatus
from ..errors import ErrorType, InvalidInputError, make_error
from ..generation.generator import SyntheticDetectionGenerator
from ..store.accumulator import ResultAccumulator


# Pydantic models for API
class OverridesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Optional[str] = None
    planet_type: Optional[str] = Field(None, alias="planetType")
    false_positive_type: Optional[str] = Field(None, alias="falsePositiveType")


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_id: str = Field(..., alias="targetId", min_length=1, max_length=64)
    sector: int = Field(..., ge=1)
    overrides: Optional[OverridesRequest] = None


class DetectionListResponse(BaseModel):
    detections: List[Dict[str, Any]]
    count: int


class SummaryResponse(BaseModel):
    exoplanets: int
    candidates: int
    false_positives: int
    total: int


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    uptime: float
    system_info: Dict[str, Any]


class DetectionAPI:
    """
    Detection dashboard API over a generator and a result accumulator.
    """

    def __init__(
        self,
        generator: Optional[SyntheticDetectionGenerator] = None,
        accumulator: Optional[ResultAccumulator] = None
    ):
        """
        Initialize API.

        Args:
            generator: Detection generator (default configuration if omitted)
            accumulator: Session result store (append policy if omitted)
        """
        self.app = FastAPI(
            title="ExoMiner Demo API",
            description="Simulated exoplanet detection results for the dashboard",
            version=__version__,
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.generator = generator or SyntheticDetectionGenerator()
        mission_prefix = self.generator.config.default_mission_prefix
        self.accumulator = (
            accumulator if accumulator is not None
            else ResultAccumulator(default_mission_prefix=mission_prefix)
        )
        self.logger = logging.getLogger(__name__)

        if self.accumulator.default_mission_prefix != mission_prefix:
            self.logger.warning(
                f"Accumulator prefix {self.accumulator.default_mission_prefix} differs from "
                f"generator prefix {mission_prefix}; unprefixed lookups may miss records"
            )

        # API statistics
        self.start_time = datetime.now(timezone.utc)
        self.request_count = 0

        self._setup_middleware()
        self._setup_exception_handlers()
        self._setup_routes()

    def _setup_middleware(self):
        """Setup CORS and request counting."""
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],  # Dashboard is served from a separate origin in development
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @self.app.middleware("http")
        async def count_requests(request: Request, call_next):
            self.request_count += 1
            response = await call_next(request)
            return response

    def _setup_exception_handlers(self):
        @self.app.exception_handler(InvalidInputError)
        async def invalid_input_handler(request: Request, exc: InvalidInputError):
            self.logger.warning(f"Invalid input on {request.url.path}: {exc}")
            return JSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content=exc.to_envelope().model_dump(mode="json")
            )

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            errors = exc.errors()
            first = errors[0] if errors else {}
            loc = [str(part) for part in first.get('loc', ()) if part not in ('body', 'query', 'path')]

            envelope = make_error(
                ErrorType.INVALID_INPUT,
                first.get('msg', "Invalid request"),
                field='.'.join(loc) or None,
                value=repr(first.get('input')),
                errors=[
                    f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
                    for error in errors
                ]
            )
            self.logger.warning(f"Rejected request on {request.url.path}: {envelope.message}")
            return JSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content=envelope.model_dump(mode="json")
            )

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/health", response_model=HealthResponse)
        async def health_check():
            """Health check endpoint."""
            now = datetime.now(timezone.utc)

            return HealthResponse(
                status="healthy",
                timestamp=now,
                version=__version__,
                uptime=(now - self.start_time).total_seconds(),
                system_info={
                    "total_requests": self.request_count,
                    "total_detections": len(self.accumulator),
                    "duplicate_policy": self.accumulator.duplicate_policy,
                    "latency_seconds": self.generator.config.latency_seconds
                }
            )

        @self.app.post("/api/v1/analyze")
        async def analyze_target(request: AnalyzeRequest):
            """Run a simulated analysis and store the result."""
            overrides = AnalysisOverrides.from_mapping(
                request.overrides.model_dump() if request.overrides else None
            )

            record = await self.generator.generate(request.target_id, request.sector, overrides)
            self.accumulator.insert(record)

            return record.to_dict()

        @self.app.get("/api/v1/detections", response_model=DetectionListResponse)
        async def list_detections(status_label: Optional[str] = Query(None, alias="status")):
            """List stored detections, most recent first."""
            status_filter = DetectionStatus.parse(status_label, 'status') if status_label else None
            records = self.accumulator.list(status_filter)

            return DetectionListResponse(
                detections=[record.to_dict() for record in records],
                count=len(records)
            )

        @self.app.get("/api/v1/detections/{target_id}/{sector}")
        async def get_detection(target_id: str, sector: int):
            """Most recent detection for a target and sector."""
            record = self.accumulator.get(target_id, sector)
            if record is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=make_error(
                        ErrorType.NOT_FOUND,
                        "No detection for target and sector",
                        target_id=target_id,
                        sector=sector
                    ).model_dump(mode="json")
                )
            return record.to_dict()

        @self.app.get("/api/v1/results/summary", response_model=SummaryResponse)
        async def results_summary():
            """Counts per classification."""
            counts = self.accumulator.status_counts()

            return SummaryResponse(
                exoplanets=counts[DetectionStatus.EXOPLANET],
                candidates=counts[DetectionStatus.CANDIDATE],
                false_positives=counts[DetectionStatus.FALSE_POSITIVE],
                total=sum(counts.values())
            )


def create_api(
    generator: Optional[SyntheticDetectionGenerator] = None,
    accumulator: Optional[ResultAccumulator] = None
) -> FastAPI:
    """
    Factory function to create the API.

    Args:
        generator: Detection generator
        accumulator: Session result store

    Returns:
        Configured FastAPI application
    """
    api = DetectionAPI(generator, accumulator)
    return api.app
