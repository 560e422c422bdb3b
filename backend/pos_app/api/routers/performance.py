from typing import Optional

from fastapi import APIRouter, Depends, Query

from pos_app.logging_conf import get_logger
from pos_app.schemas import PerformanceTimingIn, ErrorReportIn, RecordedResponse
from pos_app.services.auth_service import require_admin
from pos_app.services.telemetry_store import TelemetryStore, get_telemetry_store

router = APIRouter(prefix="/api/performance", tags=["performance"])
logger = get_logger(__name__)


@router.post("/timing", response_model=RecordedResponse)
def record_timing(req: PerformanceTimingIn, store: TelemetryStore = Depends(get_telemetry_store)):
    store.record_performance_timing(
        page_load_time=req.page_load_time,
        url=req.url,
        time_to_first_byte=req.time_to_first_byte or 0,
        dom_content_loaded=req.dom_content_loaded or 0,
    )
    logger.info("Recorded timing", extra={"url": req.url, "page_load_time": req.page_load_time})
    return RecordedResponse()


@router.get("/timing", dependencies=[Depends(require_admin)])
def get_timings(
    path: Optional[str] = Query(None, description="Only return recent timings for this url"),
    store: TelemetryStore = Depends(get_telemetry_store),
):
    data = store.get_performance_data(path)
    return {"success": True, "recent_timings": data["recent_timings"], "averages": data["averages"]}


@router.post("/error", response_model=RecordedResponse)
def record_client_error(req: ErrorReportIn, store: TelemetryStore = Depends(get_telemetry_store)):
    store.record_error(message=req.message, stack=req.stack, url=req.url, context=req.context)
    logger.warning("Recorded client error", extra={"error_message": req.message, "url": req.url})
    return RecordedResponse()


@router.get("/error", dependencies=[Depends(require_admin)])
def get_errors(store: TelemetryStore = Depends(get_telemetry_store)):
    data = store.get_error_data()
    return {
        "success": True,
        "recent_errors": data["recent_errors"],
        "most_common_errors": data["most_common_errors"],
        "total_errors": data["total_errors"],
    }
