"""FastAPI main application."""

import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional

import structlog
from fastapi import BackgroundTasks, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from ..config import configure_logging, settings
from ..core.hex_layout import HexLayout, coordinate_label
from ..core.lcg_prng import LcgPRNG
from ..core.quantization import QuantizationSettings, format_dm
from ..core.sector_map import CellView, SectorMap
from ..core.seed_codec import SeedSettings, decode_seed, encode_seed
from ..core.trail_simulation import TrailParameters
from ..core.world_generator import World, generate_world, trade_code_colour

configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Star Sector Generator API",
    description="Procedural star sector density maps with generated worlds",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class SectorGenerationRequest(BaseModel):
    """Request to generate a new sector."""

    seed: Optional[str] = Field(None, description="Encoded seed string or bare numeric seed")
    agent_count: int = Field(settings.agent_count, ge=0, le=5000, description="Agents per subsector")
    iterations: int = Field(settings.iterations, ge=0, le=2000, description="Simulation steps per subsector")
    sub_cols: int = Field(8, ge=1, le=32, description="Hex columns per subsector")
    sub_rows: int = Field(10, ge=1, le=32, description="Hex rows per subsector")
    map_mode: Optional[str] = Field(None, pattern="^(single|vastness)$", description="Overrides the encoded map mode")


class JobResponse(BaseModel):
    """Response with job information."""

    job_id: str
    status: str
    message: str
    sector_id: Optional[str] = None
    error_message: Optional[str] = None


class SeedSettingsModel(BaseModel):
    """Decoded seed string."""

    encoded: str
    levels: int
    simulation_scale: float
    saturate_factor: float
    presence_threshold: int
    display_mode: str
    map_mode: str
    show_boundaries: bool
    printable: bool
    seed: int


class SectorSummary(BaseModel):
    """Summary information about a generated sector."""

    id: str
    seed: int
    encoded_seed: str
    cols: int
    rows: int
    subsector_cols: int
    subsector_rows: int
    generation_id: int
    created_at: datetime
    generation_time_seconds: float


class WorldModel(BaseModel):
    """A generated main world."""

    uwp: str
    starport: str
    size: int
    atmosphere: int
    hydrographics: int
    population: int
    government: int
    law: int
    tech_level: int
    trade_codes: List[str]
    bases: List[str]
    gas_giant: bool
    description: str


class CellModel(BaseModel):
    """Renderer input for one hex."""

    row: int
    col: int
    index: int
    label: str
    level: int
    present: bool
    gray: int
    dm: int
    dm_label: str
    highlight: Optional[str] = Field(None, description="Trade code highlight colour")
    world: Optional[WorldModel] = None


class SectorCellsResponse(BaseModel):
    """Quantized cells of a sector or subsector."""

    sector_id: str
    generation_id: int
    levels: int
    saturate_factor: float
    presence_threshold: int
    present_count: int
    cells: List[CellModel]


class HexGeometryModel(BaseModel):
    """Canvas geometry of one hex."""

    row: int
    col: int
    label: str
    center: List[float]
    vertices: List[List[float]]


class SectorLayoutResponse(BaseModel):
    """Hex geometry for drawing a sector at screen or export resolution."""

    sector_id: str
    scale: int
    side: float
    canvas_width: float
    canvas_height: float
    hexes: List[HexGeometryModel]


class WorldRequest(BaseModel):
    """Request for a single world rolled from its own seed."""

    seed: int = Field(..., ge=0, le=0xFFFFFFFF, description="32-bit seed")


# In-memory state
@dataclass
class GenerationJob:
    id: str
    sector_id: str
    status: str = "pending"
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None


@dataclass
class SectorRecord:
    id: str
    sector_map: SectorMap
    seed_settings: SeedSettings
    created_at: datetime
    generation_time_seconds: float


jobs: Dict[str, GenerationJob] = {}
sectors: Dict[str, SectorRecord] = {}


def world_to_model(world: World) -> WorldModel:
    data = world.to_dict()
    data["description"] = world.describe()
    return WorldModel(**data)


def seed_settings_to_model(seed_settings: SeedSettings) -> SeedSettingsModel:
    return SeedSettingsModel(
        encoded=encode_seed(seed_settings),
        levels=seed_settings.levels,
        simulation_scale=seed_settings.simulation_scale,
        saturate_factor=seed_settings.saturate_factor,
        presence_threshold=seed_settings.presence_threshold,
        display_mode=seed_settings.display_mode,
        map_mode=seed_settings.map_mode,
        show_boundaries=seed_settings.show_boundaries,
        printable=seed_settings.printable,
        seed=seed_settings.seed,
    )


def cell_to_model(cell: CellView) -> CellModel:
    return CellModel(
        row=cell.row,
        col=cell.col,
        index=cell.index,
        label=cell.label,
        level=cell.level,
        present=cell.present,
        gray=cell.gray,
        dm=cell.dm,
        dm_label=format_dm(cell.dm),
        highlight=trade_code_colour(cell.world.trade_codes) if cell.world else None,
        world=world_to_model(cell.world) if cell.world else None,
    )


def default_seed_settings() -> SeedSettings:
    return SeedSettings(
        levels=settings.default_levels,
        presence_threshold=min(settings.default_presence_threshold, settings.default_levels),
    )


def get_sector_record(sector_id: str) -> SectorRecord:
    record = sectors.get(sector_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Sector not found")
    return record


def build_quantization(
    record: SectorRecord,
    levels: Optional[int],
    saturate: Optional[float],
    threshold: Optional[int],
) -> QuantizationSettings:
    """Query overrides on top of the sector's encoded display settings."""
    defaults = record.seed_settings
    levels = levels if levels is not None else defaults.levels
    if threshold is None:
        # Encoded threshold is capped by the requested level count
        threshold = max(1, min(defaults.presence_threshold, levels))
    try:
        return QuantizationSettings(
            levels=levels,
            saturate_factor=saturate if saturate is not None else defaults.saturate_factor,
            presence_threshold=threshold,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


def resolve_worlds(record: SectorRecord, worlds: Optional[bool]) -> bool:
    """Explicit query flag, else worlds only in the encoded density mode."""
    if worlds is not None:
        return worlds
    return record.seed_settings.generate_worlds


def build_cells_response(
    record: SectorRecord,
    quantization: QuantizationSettings,
    cells: List[CellView],
) -> SectorCellsResponse:
    return SectorCellsResponse(
        sector_id=record.id,
        generation_id=record.sector_map.generation_id,
        levels=quantization.levels,
        saturate_factor=quantization.saturate_factor,
        presence_threshold=quantization.presence_threshold,
        present_count=sum(1 for cell in cells if cell.present),
        cells=[cell_to_model(cell) for cell in cells],
    )


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Star Sector Generator API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "sectors": len(sectors), "jobs": len(jobs)}


@app.post("/sectors/generate", response_model=JobResponse)
async def generate_sector(request: SectorGenerationRequest, background_tasks: BackgroundTasks):
    """
    Start sector generation job.

    Returns immediately with job ID. Use /jobs/{job_id} to check status.
    """
    logger.info("Sector generation requested", request=request.model_dump())

    seed_settings = decode_seed(request.seed, defaults=default_seed_settings())
    if request.map_mode is not None:
        seed_settings = replace(seed_settings, map_mode=request.map_mode)

    job_id = str(uuid.uuid4())
    sector_id = str(uuid.uuid4())
    jobs[job_id] = GenerationJob(id=job_id, sector_id=sector_id)

    background_tasks.add_task(run_sector_generation, job_id, request, seed_settings)

    return JobResponse(
        job_id=job_id,
        status="pending",
        message="Sector generation job started",
        sector_id=sector_id,
    )


@app.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job_status(job_id: str):
    """Get status of a sector generation job."""
    job = jobs.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    return JobResponse(
        job_id=job.id,
        status=job.status,
        message=f"Job {job.status}",
        sector_id=job.sector_id if job.status == "completed" else None,
        error_message=job.error_message,
    )


def sector_summary(record: SectorRecord) -> SectorSummary:
    context = record.sector_map.snapshot()
    return SectorSummary(
        id=record.id,
        seed=context.seed,
        encoded_seed=encode_seed(record.seed_settings),
        cols=context.shape.cols,
        rows=context.shape.rows,
        subsector_cols=context.shape.subsector_cols,
        subsector_rows=context.shape.subsector_rows,
        generation_id=context.generation_id,
        created_at=record.created_at,
        generation_time_seconds=record.generation_time_seconds,
    )


@app.get("/sectors", response_model=List[SectorSummary])
async def list_sectors():
    """List all generated sectors."""
    records = sorted(sectors.values(), key=lambda r: r.created_at, reverse=True)
    return [sector_summary(record) for record in records]


@app.get("/sectors/{sector_id}", response_model=SectorSummary)
async def get_sector(sector_id: str):
    """Get sector details."""
    return sector_summary(get_sector_record(sector_id))


@app.get("/sectors/{sector_id}/cells", response_model=SectorCellsResponse)
async def get_sector_cells(
    sector_id: str,
    levels: Optional[int] = Query(None, description="Grey levels (2-16)"),
    saturate: Optional[float] = Query(None, description="Saturate factor (> 0)"),
    threshold: Optional[int] = Query(None, description="Presence threshold (1-levels)"),
    worlds: Optional[bool] = Query(None, description="Roll worlds for present cells; defaults to the display mode"),
):
    """Quantized renderer input for every cell of a sector."""
    record = get_sector_record(sector_id)
    quantization = build_quantization(record, levels, saturate, threshold)
    cells = record.sector_map.cells(quantization, generate_worlds=resolve_worlds(record, worlds))
    return build_cells_response(record, quantization, cells)


@app.get("/sectors/{sector_id}/subsectors/{sx}/{sy}", response_model=SectorCellsResponse)
async def get_subsector_cells(
    sector_id: str,
    sx: int,
    sy: int,
    levels: Optional[int] = Query(None, description="Grey levels (2-16)"),
    saturate: Optional[float] = Query(None, description="Saturate factor (> 0)"),
    threshold: Optional[int] = Query(None, description="Presence threshold (1-levels)"),
    worlds: Optional[bool] = Query(None, description="Roll worlds for present cells; defaults to the display mode"),
):
    """Quantized renderer input for one subsector."""
    record = get_sector_record(sector_id)
    quantization = build_quantization(record, levels, saturate, threshold)
    try:
        cells = record.sector_map.subsector_cells(sx, sy, quantization, generate_worlds=resolve_worlds(record, worlds))
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return build_cells_response(record, quantization, cells)


@app.get("/sectors/{sector_id}/layout", response_model=SectorLayoutResponse)
async def get_sector_layout(
    sector_id: str,
    export: bool = Query(False, description="Use export resolution instead of screen size"),
):
    """Hex centres and corners fitted to the configured canvas."""
    shape = get_sector_record(sector_id).sector_map.snapshot().shape
    layout = HexLayout.fit(shape.cols, shape.rows, settings.max_canvas_width, settings.max_canvas_height)
    scale = settings.export_scale if export else 1
    if export:
        layout = layout.scaled(scale)

    width, height = layout.canvas_size
    hexes = [
        HexGeometryModel(
            row=row,
            col=col,
            label=coordinate_label(row, col, shape.sub_cols, shape.sub_rows),
            center=list(layout.center(row, col)),
            vertices=[list(point) for point in layout.vertices(row, col)],
        )
        for row in range(shape.rows)
        for col in range(shape.cols)
    ]
    return SectorLayoutResponse(
        sector_id=sector_id,
        scale=scale,
        side=layout.side,
        canvas_width=width,
        canvas_height=height,
        hexes=hexes,
    )


@app.post("/worlds", response_model=WorldModel)
async def create_world(request: WorldRequest):
    """Roll a single world from its own seed."""
    world = generate_world(LcgPRNG(request.seed))
    return world_to_model(world)


@app.get("/seeds/decode", response_model=SeedSettingsModel)
async def decode_seed_string(value: str = Query(..., description="Encoded seed string")):
    """Decode a seed string, applying defaults for legacy layouts."""
    return seed_settings_to_model(decode_seed(value, defaults=default_seed_settings()))


# Background task functions
def run_sector_generation(job_id: str, request: SectorGenerationRequest, seed_settings: SeedSettings):
    """
    Background task to generate a sector.

    Must stay a plain ``def``: Starlette then runs it in its threadpool,
    off the event loop.
    """
    job = jobs[job_id]
    job.status = "running"
    logger.info("Starting sector generation", job_id=job_id, seed=seed_settings.seed)

    try:
        params = TrailParameters(
            agent_count=request.agent_count,
            iterations=request.iterations,
        )
        sector_map = SectorMap.from_seed_settings(
            seed_settings, params=params, sub_cols=request.sub_cols, sub_rows=request.sub_rows
        )

        started = time.perf_counter()
        sector_map.regenerate(seed_settings.seed)
        elapsed = time.perf_counter() - started

        sectors[job.sector_id] = SectorRecord(
            id=job.sector_id,
            sector_map=sector_map,
            seed_settings=seed_settings,
            created_at=datetime.utcnow(),
            generation_time_seconds=elapsed,
        )
        job.status = "completed"
        job.completed_at = datetime.utcnow()
        logger.info("Sector generation completed", job_id=job_id, sector_id=job.sector_id, seconds=elapsed)

    except Exception as e:
        logger.error("Sector generation failed", job_id=job_id, error=str(e))
        job.status = "failed"
        job.error_message = str(e)
        job.completed_at = datetime.utcnow()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
