"""FastAPI application serving globe textures and connection arcs."""

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .. import __version__
from ..config import settings
from ..core.arcs import ArcOptions, arcs_to_dicts, generate_arcs
from ..core.entities import (
    ALL,
    GeoEntity,
    GlobePoint,
    count_critical,
    filter_entities,
    split_research_entities,
    to_globe_points,
)
from ..core.geo_features import GeoDataError, GeoFeature, fetch_feature_collection, parse_feature_collection
from ..core.texture import TextureOptions, render_globe_texture
from ..utils.random import get_rng

# Configure logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if settings.log_format == "plain" else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Atlas Globe API",
    description="Globe textures and connection arcs for the surveillance entity atlas",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class TextureRequest(BaseModel):
    """Request to render a texture from caller supplied borders."""

    geojson: Dict[str, Any] = Field(..., description="GeoJSON FeatureCollection of country borders")
    seed: Optional[str] = Field(None, description="Random seed for reproducible output")
    width: Optional[int] = Field(None, ge=16, le=8192, description="Texture width")
    height: Optional[int] = Field(None, ge=8, le=4096, description="Texture height")


class ArcRequest(BaseModel):
    """Request to sample connection arcs."""

    entities: List[GeoEntity] = Field(default_factory=list, description="Catalog entities")
    seed: Optional[str] = Field(None, description="Random seed for reproducible output")
    risk_level: str = Field(ALL, description="Risk level filter or 'all'")
    entity_type: str = Field(ALL, description="Entity type filter or 'all'")
    include_research: bool = Field(True, description="Append research network entities")


class ArcResponse(BaseModel):
    """Arcs plus the styled points they connect."""

    arcs: List[Dict[str, float]]
    points: List[GlobePoint]
    entity_count: int
    research_count: int
    critical_count: int


@lru_cache(maxsize=4)
def cached_country_features(url: str) -> List[GeoFeature]:
    """Country borders are only downloaded once per URL."""
    return fetch_feature_collection(url, timeout=settings.geojson_timeout_seconds)


def _png_response(features: List[GeoFeature], seed: Optional[str],
                  width: Optional[int], height: Optional[int]) -> Response:
    options = TextureOptions.from_settings(settings, width=width, height=height)
    image = render_globe_texture(features, rng=get_rng(seed or settings.random_seed), options=options)
    headers = {"X-Texture-Fallback": "1" if image.is_fallback else "0"}
    return Response(content=image.to_png_bytes(), media_type="image/png", headers=headers)


@app.on_event("startup")
async def startup_event():
    logger.info("Starting Atlas Globe API", raster_backend=settings.raster_backend)


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Atlas Globe API",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "raster_backend": settings.raster_backend}


@app.get("/texture.png")
def get_texture(
    seed: Optional[str] = Query(None, description="Random seed"),
    width: Optional[int] = Query(None, ge=16, le=8192),
    height: Optional[int] = Query(None, ge=8, le=4096),
):
    """Render the globe texture from the configured country border dataset."""
    try:
        features = cached_country_features(settings.geojson_url)
    except GeoDataError as e:
        logger.error("Country borders unavailable", url=settings.geojson_url, error=str(e))
        raise HTTPException(status_code=502, detail="Country border data unavailable")
    return _png_response(features, seed, width, height)


@app.post("/texture")
def post_texture(request: TextureRequest):
    """Render a globe texture from the posted FeatureCollection."""
    try:
        features = parse_feature_collection(request.geojson)
    except GeoDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("Texture requested", features=len(features), seed=request.seed)
    return _png_response(features, request.seed, request.width, request.height)


@app.post("/arcs", response_model=ArcResponse)
async def post_arcs(request: ArcRequest):
    """Filter entities and sample connection arcs between them."""
    shown = filter_entities(
        request.entities,
        risk_level=request.risk_level,
        entity_type=request.entity_type,
        include_research=request.include_research,
    )
    regular, research = split_research_entities(shown)
    arcs = generate_arcs(shown, rng=get_rng(request.seed or settings.random_seed),
                         options=ArcOptions.from_settings(settings))

    return ArcResponse(
        arcs=arcs_to_dicts(arcs),
        points=to_globe_points(shown),
        entity_count=len(regular),
        research_count=len(research),
        critical_count=count_critical(regular),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
