from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import func, select

from app.joyeria.core.metrics import metrics
from app.joyeria.db.models import DaySale
from app.joyeria.db.session import get_db

router = APIRouter()
metrics_router = APIRouter()


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


@router.get("/health")
async def health(request: Request):
    return {"status": "ok", "trace_id": _trace_id(request)}


@router.get("/ready")
def ready(request: Request, db=Depends(get_db)):
    """Storage round trip; also reports whether the register has unclosed sales."""
    open_sales = db.scalar(select(func.count()).select_from(DaySale))
    return {
        "status": "ready",
        "caja_abierta": bool(open_sales),
        "ventas_dia": open_sales,
        "trace_id": _trace_id(request),
    }


@metrics_router.get("/ops/metrics")
def scrape_metrics():
    snapshot = metrics.render()
    return Response(content=snapshot.content, media_type=snapshot.content_type)
