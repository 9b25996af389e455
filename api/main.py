"""
RainCheck API — FastAPI backend for rainwater-harvesting feasibility assessments.

Endpoints:
  POST /api/assessments            — Full assessment (rainfall looked up by coordinates)
  POST /api/assessments/manual     — Assessment with caller-supplied rainfall
  GET  /api/rainfall?lat=..&lon=.. — Rainfall record used for a location
  GET  /api/geocode/reverse        — Address label for coordinates
  POST /api/clients                — Store client contact details
  GET  /api/v1/health              — Service health
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("raincheck")

# Add scripts directory so we can import the engines
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

from assessment_engine import assemble_assessment, run_assessment
from client_store import ensure_schema, get_engine, save_client
from geocoding import parse_gps_coords, reverse_geocode
from rainfall_provider import fetch_rainfall
from rwh_models import (
    MAX_AREA_M2,
    AssessmentResult,
    ClientRecord,
    Coordinates,
    GeocodeResult,
    RainfallRecord,
    SiteProfile,
)

API_VERSION = "1.0.0"

engine = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global engine
    try:
        engine = get_engine()
        ensure_schema(engine)
        logger.info("STARTUP: client store ready")
    except SQLAlchemyError as e:
        logger.warning("STARTUP: client store unavailable: %s", e)
        engine = None
    yield
    if engine is not None:
        engine.dispose()


app = FastAPI(title="RainCheck API", version=API_VERSION, lifespan=lifespan)

ALLOWED_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if os.environ.get("ENVIRONMENT") == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


app.add_middleware(SecurityHeadersMiddleware)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request, exc: RequestValidationError):
    # Rejected input is left out: it may be Infinity/NaN, which JSON cannot carry
    errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class AssessmentRequest(BaseModel):
    roof_area_m2: float = Field(..., gt=0, le=MAX_AREA_M2, allow_inf_nan=False,
                                description="Roof catchment area in m²")
    open_space_m2: float = Field(0.0, ge=0, le=MAX_AREA_M2, allow_inf_nan=False,
                                 description="Open ground area in m²")
    soil_type: str = Field("mixed", description="clay, sandy, loamy, rocky or mixed")
    location: str = Field("", description="Address or place name")
    gps_coords: Optional[str] = Field(None, description="'lat, lng' as captured by the form")


class ManualAssessmentRequest(BaseModel):
    site: SiteProfile
    rainfall: RainfallRecord


def _invalid_coordinates(message: str) -> HTTPException:
    return HTTPException(status_code=422, detail={"error": "invalid_coordinates", "message": message})


def _site_from_request(req: AssessmentRequest) -> SiteProfile:
    coords = None
    if req.gps_coords and req.gps_coords.strip():
        try:
            coords = parse_gps_coords(req.gps_coords)
        except ValueError as e:
            raise _invalid_coordinates(str(e))
    try:
        return SiteProfile(
            roof_area_m2=req.roof_area_m2,
            open_space_m2=req.open_space_m2,
            soil_type=req.soil_type,
            location_label=req.location,
            coordinates=coords,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": "invalid_site", "message": str(e)},
        )


# ---------------------------------------------------------------------------
# Assessment endpoints
# ---------------------------------------------------------------------------

@app.post("/api/assessments", response_model=AssessmentResult)
async def create_assessment(req: AssessmentRequest):
    """Run the full assessment pipeline for a site."""
    site = _site_from_request(req)
    result = await run_assessment(site)
    if result.used_default_rainfall:
        logger.info("Assessment for %r used default rainfall", site.location_label)
    return result


@app.post("/api/assessments/manual", response_model=AssessmentResult)
def create_manual_assessment(req: ManualAssessmentRequest):
    """Assessment with a caller-supplied rainfall record (no lookup)."""
    return assemble_assessment(req.site, req.rainfall)


@app.get("/api/rainfall", response_model=RainfallRecord)
async def get_rainfall(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
):
    """Rainfall record for a location (default record without coordinates)."""
    coords = Coordinates(latitude=lat, longitude=lon) if lat is not None and lon is not None else None
    return await fetch_rainfall(coords)


@app.get("/api/geocode/reverse", response_model=GeocodeResult)
async def get_reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
):
    """Address label for coordinates, or formatted coordinates on failure."""
    return await reverse_geocode(lat, lon)


# ---------------------------------------------------------------------------
# Client records
# ---------------------------------------------------------------------------

@app.post("/api/clients", status_code=201)
def create_client(record: ClientRecord):
    """Store client contact details."""
    if engine is None:
        raise HTTPException(status_code=503, detail="Client store unavailable")
    try:
        new_id = save_client(engine, record)
    except SQLAlchemyError as e:
        logger.error("Saving client record failed: %s", e)
        raise HTTPException(status_code=503, detail="Client store unavailable")
    return {"id": new_id, "submission_time": record.submission_time.isoformat()}


# ---------------------------------------------------------------------------
# v1 Router
# ---------------------------------------------------------------------------
v1 = APIRouter(prefix="/api/v1", tags=["v1"])


@v1.get("/health")
def v1_health():
    """API health check. The engine works without the database."""
    checks = {
        "version": API_VERSION,
        "database": "disconnected",
        "checked_at": datetime.now(timezone.utc).isoformat(),
    }
    try:
        if engine is not None:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                checks["database"] = "connected"
    except SQLAlchemyError as e:
        checks["error"] = str(e)
    checks["status"] = "ok" if checks["database"] == "connected" else "degraded"
    return checks  # Always HTTP 200


app.include_router(v1)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
