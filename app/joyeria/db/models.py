import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import CHAR, TypeDecorator


class GUID(TypeDecorator):
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return str(value)
        return str(uuid.UUID(value))

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "usuarios"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="dependiente")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Product(Base):
    __tablename__ = "joyas"
    __table_args__ = (CheckConstraint("stock_actual >= 0", name="ck_joyas_stock_no_negativo"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    codigo: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    descripcion: Mapped[str | None] = mapped_column(Text, nullable=True)
    categoria: Mapped[str | None] = mapped_column(String(100), nullable=True)
    precio_venta: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    stock_actual: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stock_minimo: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    estado: Mapped[str] = mapped_column(String(30), nullable=False, default="Activo")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Client(Base):
    __tablename__ = "clientes"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    cedula: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)
    telefono: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class SaleColumnsMixin:
    """Header columns shared by the open-register and historical sale tables."""

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    fecha_venta: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    id_usuario: Mapped[uuid.UUID | None] = mapped_column(GUID(), ForeignKey("usuarios.id"), nullable=True)
    usuario: Mapped[str | None] = mapped_column(String(150), nullable=True)
    tipo_venta: Mapped[str] = mapped_column(String(20), nullable=False, default="Contado")
    metodo_pago: Mapped[str] = mapped_column(String(30), nullable=False)
    subtotal: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    descuento: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    efectivo_recibido: Mapped[float | None] = mapped_column(Float, nullable=True)
    cambio: Mapped[float | None] = mapped_column(Float, nullable=True)
    monto_efectivo: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    monto_tarjeta: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    monto_transferencia: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    id_cliente: Mapped[uuid.UUID | None] = mapped_column(GUID(), ForeignKey("clientes.id"), nullable=True, index=True)
    notas: Mapped[str | None] = mapped_column(Text, nullable=True)


class SaleItemColumnsMixin:
    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    id_joya: Mapped[uuid.UUID | None] = mapped_column(GUID(), ForeignKey("joyas.id"), nullable=True, index=True)
    descripcion_item: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cantidad: Mapped[int] = mapped_column(Integer, nullable=False)
    precio_unitario: Mapped[float] = mapped_column(Float, nullable=False)
    subtotal: Mapped[float] = mapped_column(Float, nullable=False)


class DaySale(SaleColumnsMixin, Base):
    __tablename__ = "ventas_dia"

    items = relationship("DaySaleItem", back_populates="sale", order_by="DaySaleItem.position")


class DaySaleItem(SaleItemColumnsMixin, Base):
    __tablename__ = "items_venta_dia"

    id_venta_dia: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("ventas_dia.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    sale = relationship("DaySale", back_populates="items")
    product = relationship("Product")


class Sale(SaleColumnsMixin, Base):
    __tablename__ = "ventas"

    id_venta_dia_origen: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True, unique=True)
    fecha_registro: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    items = relationship("SaleItem", back_populates="sale", order_by="SaleItem.position")


class SaleItem(SaleItemColumnsMixin, Base):
    __tablename__ = "items_venta"

    id_venta: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("ventas.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")


class InventoryMovement(Base):
    __tablename__ = "movimientos_inventario"
    __table_args__ = (CheckConstraint("stock_despues >= 0", name="ck_movimientos_stock_despues"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    id_joya: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("joyas.id"), nullable=False, index=True)
    tipo_movimiento: Mapped[str] = mapped_column(String(20), nullable=False)
    cantidad: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_antes: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_despues: Mapped[int] = mapped_column(Integer, nullable=False)
    motivo: Mapped[str] = mapped_column(String(500), nullable=False)
    usuario: Mapped[str | None] = mapped_column(String(150), nullable=True)
    id_usuario: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    fecha_movimiento: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    product = relationship("Product")


class ReceivableAccount(Base):
    __tablename__ = "cuentas_por_cobrar"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    id_cliente: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("clientes.id"), nullable=False, index=True)
    id_venta: Mapped[uuid.UUID | None] = mapped_column(GUID(), ForeignKey("ventas.id"), nullable=True)
    monto_total: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    monto_pagado: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    saldo_pendiente: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    estado: Mapped[str] = mapped_column(String(20), nullable=False, default="Pendiente")
    fecha_vencimiento: Mapped[date | None] = mapped_column(Date, nullable=True)
    fecha_ultimo_pago: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notas: Mapped[str | None] = mapped_column(Text, nullable=True)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    client = relationship("Client")

    __mapper_args__ = {"version_id_col": version_id}


class AccountMovement(Base):
    __tablename__ = "movimientos_cuenta"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    id_cuenta: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("cuentas_por_cobrar.id"), nullable=False, index=True
    )
    tipo: Mapped[str] = mapped_column(String(20), nullable=False)
    monto: Mapped[float] = mapped_column(Float, nullable=False)
    id_venta: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    id_abono: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    descripcion: Mapped[str | None] = mapped_column(String(500), nullable=True)
    usuario: Mapped[str | None] = mapped_column(String(150), nullable=True)
    fecha_movimiento: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Payment(Base):
    __tablename__ = "abonos"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    id_cuenta: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("cuentas_por_cobrar.id"), nullable=False, index=True
    )
    monto: Mapped[float] = mapped_column(Float, nullable=False)
    metodo_pago: Mapped[str] = mapped_column(String(30), nullable=False)
    notas: Mapped[str | None] = mapped_column(Text, nullable=True)
    usuario: Mapped[str | None] = mapped_column(String(150), nullable=True)
    id_usuario: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    fecha_abono: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    cerrado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fecha_cierre: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class ExtraIncome(Base):
    __tablename__ = "ingresos_extras"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    tipo: Mapped[str] = mapped_column(String(30), nullable=False)
    monto: Mapped[float] = mapped_column(Float, nullable=False)
    metodo_pago: Mapped[str] = mapped_column(String(30), nullable=False)
    descripcion: Mapped[str] = mapped_column(String(500), nullable=False)
    notas: Mapped[str | None] = mapped_column(Text, nullable=True)
    usuario: Mapped[str | None] = mapped_column(String(150), nullable=True)
    id_usuario: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    fecha_ingreso: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    cerrado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fecha_cierre: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class SaleReturn(Base):
    __tablename__ = "devoluciones"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    id_venta: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("ventas.id"), nullable=False, index=True)
    id_item_venta: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("items_venta.id"), nullable=False, index=True)
    id_joya: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    cantidad: Mapped[int] = mapped_column(Integer, nullable=False)
    precio_unitario: Mapped[float] = mapped_column(Float, nullable=False)
    subtotal: Mapped[float] = mapped_column(Float, nullable=False)
    motivo: Mapped[str] = mapped_column(String(500), nullable=False)
    tipo_devolucion: Mapped[str] = mapped_column(String(30), nullable=False)
    metodo_reembolso: Mapped[str | None] = mapped_column(String(30), nullable=True)
    estado: Mapped[str] = mapped_column(String(20), nullable=False, default="Aprobada")
    notas: Mapped[str | None] = mapped_column(Text, nullable=True)
    usuario: Mapped[str | None] = mapped_column(String(150), nullable=True)
    id_usuario: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    fecha_devolucion: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class CashRegisterClosing(Base):
    __tablename__ = "cierres_caja"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    fecha_cierre: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    usuario: Mapped[str | None] = mapped_column(String(150), nullable=True)
    id_usuario: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    total_ventas: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monto_total_ventas: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_efectivo: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_tarjeta: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_transferencia: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    monto_abonos: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    monto_ingresos_extras: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_general: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    resumen: Mapped[dict] = mapped_column(JSON, nullable=False)


class IdempotencyRecord(Base):
    __tablename__ = "idempotency_records"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(GUID(), index=True, nullable=False)
    endpoint: Mapped[str] = mapped_column(String(255), nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(255), nullable=False)
    request_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    state: Mapped[str] = mapped_column(String(20), nullable=False)
    status_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    response_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "endpoint", "method", "idempotency_key", name="uq_idempotency"),
    )


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(GUID(), index=True, nullable=True)
    trace_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor: Mapped[str] = mapped_column(String(150), nullable=False)
    action: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    before_payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    after_payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    event_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    result: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


Index(
    "uq_cuentas_por_cobrar_pendiente_cliente",
    ReceivableAccount.id_cliente,
    unique=True,
    sqlite_where=text("estado = 'Pendiente'"),
    postgresql_where=text("estado = 'Pendiente'"),
)
