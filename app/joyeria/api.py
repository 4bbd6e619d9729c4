from fastapi import APIRouter

from app.joyeria.core.config import settings
from app.joyeria.routers.auth import router as auth_router
from app.joyeria.routers.closings import router as closings_router
from app.joyeria.routers.extra_income import router as extra_income_router
from app.joyeria.routers.inventory import router as inventory_router
from app.joyeria.routers.ops import metrics_router
from app.joyeria.routers.ops import router as ops_router
from app.joyeria.routers.receivables import router as receivables_router
from app.joyeria.routers.returns import router as returns_router
from app.joyeria.routers.sales import router as sales_router

api_router = APIRouter()
api_router.include_router(ops_router, tags=["ops"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(sales_router, tags=["ventas"])
api_router.include_router(inventory_router, tags=["inventario"])
api_router.include_router(receivables_router, tags=["cuentas-por-cobrar"])
api_router.include_router(closings_router, prefix="/cierrecaja", tags=["cierre-caja"])
api_router.include_router(returns_router, tags=["devoluciones"])
api_router.include_router(extra_income_router, tags=["ingresos-extras"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
