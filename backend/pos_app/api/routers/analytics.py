from typing import Optional

from fastapi import APIRouter, Depends, Query

from pos_app.logging_conf import get_logger
from pos_app.schemas import EventIn, PageViewIn
from pos_app.services.auth_service import require_admin
from pos_app.services.telemetry_store import TelemetryStore, get_telemetry_store

router = APIRouter(prefix="/api/analytics", tags=["analytics"])
logger = get_logger(__name__)

# Handlers are plain `def`: the store does blocking file I/O, so FastAPI runs
# them in its threadpool.


@router.post("/event")
def record_event(req: EventIn, store: TelemetryStore = Depends(get_telemetry_store)):
    store.record_event(req.event, req.properties or {})
    count = store.event_count(req.event)
    logger.info("Recorded event", extra={"event": req.event, "count": count})
    return {"success": True, "event": req.event, "count": count}


@router.get("/event", dependencies=[Depends(require_admin)])
def get_events(
    event_type: Optional[str] = Query(None, alias="type"),
    store: TelemetryStore = Depends(get_telemetry_store),
):
    if event_type:
        return {"success": True, "event_type": event_type, "count": store.event_count(event_type)}

    data = store.get_event_data()
    return {"success": True, "event_counts": data["counts"], "recent_events": data["recent_events"]}


@router.post("/pageview")
def record_page_view(req: PageViewIn, store: TelemetryStore = Depends(get_telemetry_store)):
    views = store.record_page_view(req.path)
    logger.info("Recorded page view", extra={"page": req.path, "views": views})
    return {"success": True, "path": req.path, "views": views}


@router.get("/pageview", dependencies=[Depends(require_admin)])
def get_page_views(store: TelemetryStore = Depends(get_telemetry_store)):
    return {"success": True, "page_views": store.get_page_views()}
