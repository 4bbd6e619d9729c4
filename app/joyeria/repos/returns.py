from sqlalchemy import select

from app.joyeria.db.models import SaleReturn


class ReturnRepository:
    def __init__(self, db):
        self.db = db

    def add(self, sale_return: SaleReturn) -> SaleReturn:
        self.db.add(sale_return)
        self.db.flush()
        return sale_return

    def list_returns(self, *, sale_id=None) -> list[SaleReturn]:
        stmt = select(SaleReturn)
        if sale_id is not None:
            stmt = stmt.where(SaleReturn.id_venta == sale_id)
        return self.db.execute(stmt.order_by(SaleReturn.fecha_devolucion.desc())).scalars().all()
