from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

import pathlib
import secrets

from .cache import TTLCache
from .config import Settings, settings
from .errors import RosterError, error_response, validation_message
from .logs import get_logger, setup_logging
from .models import AssignRequest, AuthRequest, BatchRequest, BlackoutRequest, ClearRequest
from .service import ScheduleService
from .sheets import SheetsClient

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.sheets = SheetsClient.from_settings(settings)
    app.state.cache = TTLCache()
    logger.info("Roster backend ready", spreadsheet_id=settings.SPREADSHEET_ID)
    yield
    await app.state.sheets.aclose()


app = FastAPI(title="DJ Roster", lifespan=lifespan)


# ---------- Dependencies ----------
def get_settings() -> Settings:
    return settings

def get_store(request: Request):
    return request.app.state.sheets

def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache

def get_service(store=Depends(get_store), cache=Depends(get_cache), cfg=Depends(get_settings)):
    return ScheduleService(store, cache, cfg)


def failed(operation: str, e: Exception, **fields):
    if isinstance(e, RosterError):
        logger.warning(f"{operation} rejected", error=str(e), **fields)
    else:
        logger.error(f"{operation} failed", error=str(e), error_type=type(e).__name__, **fields)
    return error_response(e)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # Same envelope as every other failure; clients only look at `success`
    return JSONResponse({"success": False, "error": validation_message(exc.errors())})


# ---------- API ----------
@app.post("/api/auth")
def auth(body: AuthRequest, cfg: Settings = Depends(get_settings)):
    ok = bool(cfg.ADMIN_PASSWORD) and secrets.compare_digest(
        body.password.encode(), cfg.ADMIN_PASSWORD.encode()
    )
    return {"success": ok}

@app.get("/api/djs")
async def list_djs(service: ScheduleService = Depends(get_service)):
    try:
        return {"success": True, "djs": await service.list_djs()}
    except Exception as e:
        return failed("List DJs", e)

@app.get("/api/availability")
async def availability(month: str | None = None, service: ScheduleService = Depends(get_service)):
    try:
        result = await service.availability(month)
        return {"success": True, **result}
    except Exception as e:
        return failed("Availability", e, month=month)

@app.post("/api/blackout")
async def blackout(body: BlackoutRequest, service: ScheduleService = Depends(get_service)):
    try:
        count = await service.submit_blackouts(
            body.dj, body.month, [d.model_dump() for d in body.dates]
        )
        return {"success": True, "count": count}
    except Exception as e:
        return failed("Blackout submission", e, dj=body.dj, month=body.month)

@app.get("/api/roster")
async def get_roster(venue: str | None = None, month: str | None = None,
                     service: ScheduleService = Depends(get_service)):
    try:
        return {"success": True, "roster": await service.roster(venue, month)}
    except Exception as e:
        return failed("Roster read", e, venue=venue, month=month)

@app.post("/api/roster/assign")
async def assign(body: AssignRequest, service: ScheduleService = Depends(get_service)):
    try:
        action = await service.assign(body.venue, body.date, body.slot, body.dj, body.month)
        return {"success": True, "action": action}
    except Exception as e:
        return failed("Roster assign", e, venue=body.venue, date=body.date, slot=body.slot)

@app.post("/api/roster/batch")
async def assign_batch(body: BatchRequest, service: ScheduleService = Depends(get_service)):
    try:
        result = await service.assign_batch(
            body.venue, body.month, [a.model_dump() for a in body.assignments]
        )
        return {"success": True, **result}
    except Exception as e:
        return failed("Roster batch", e, venue=body.venue, month=body.month)

@app.post("/api/roster/clear")
async def clear(body: ClearRequest, service: ScheduleService = Depends(get_service)):
    try:
        removed = await service.clear(body.venue, body.month)
        return {"success": True, "removed": removed}
    except Exception as e:
        return failed("Roster clear", e, venue=body.venue, month=body.month)

@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}

# ---------- Static site (mounted AFTER APIs) ----------
PUBLIC_DIR = pathlib.Path(__file__).resolve().parents[1] / "public"

def _page(name: str):
    def serve():
        return FileResponse(PUBLIC_DIR / name)
    return serve

app.add_api_route("/", _page("index.html"), methods=["GET"], include_in_schema=False)
app.add_api_route("/availability", _page("availability.html"), methods=["GET"], include_in_schema=False)
app.add_api_route("/roster", _page("roster.html"), methods=["GET"], include_in_schema=False)
app.add_api_route("/hours", _page("hours.html"), methods=["GET"], include_in_schema=False)

app.mount("/static", StaticFiles(directory=str(PUBLIC_DIR)), name="static")
