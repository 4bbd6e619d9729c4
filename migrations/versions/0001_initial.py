"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-01-05 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


class GUID(sa.TypeDecorator):
    impl = sa.CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(sa.CHAR(36))


def _sale_columns():
    return [
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("fecha_venta", sa.DateTime(), nullable=False, index=True),
        sa.Column("id_usuario", GUID(), sa.ForeignKey("usuarios.id"), nullable=True),
        sa.Column("usuario", sa.String(length=150), nullable=True),
        sa.Column("tipo_venta", sa.String(length=20), nullable=False, server_default="Contado"),
        sa.Column("metodo_pago", sa.String(length=30), nullable=False),
        sa.Column("subtotal", sa.Float(), nullable=False, server_default="0"),
        sa.Column("descuento", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total", sa.Float(), nullable=False, server_default="0"),
        sa.Column("efectivo_recibido", sa.Float(), nullable=True),
        sa.Column("cambio", sa.Float(), nullable=True),
        sa.Column("monto_efectivo", sa.Float(), nullable=False, server_default="0"),
        sa.Column("monto_tarjeta", sa.Float(), nullable=False, server_default="0"),
        sa.Column("monto_transferencia", sa.Float(), nullable=False, server_default="0"),
        sa.Column("id_cliente", GUID(), sa.ForeignKey("clientes.id"), nullable=True, index=True),
        sa.Column("notas", sa.Text(), nullable=True),
    ]


def _sale_item_columns():
    return [
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("id_joya", GUID(), sa.ForeignKey("joyas.id"), nullable=True, index=True),
        sa.Column("descripcion_item", sa.String(length=255), nullable=True),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        sa.Column("precio_unitario", sa.Float(), nullable=False),
        sa.Column("subtotal", sa.Float(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    ]


def upgrade() -> None:
    op.create_table(
        "usuarios",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="dependiente"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_usuarios_username", "usuarios", ["username"], unique=True)

    op.create_table(
        "joyas",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("codigo", sa.String(length=100), nullable=False),
        sa.Column("nombre", sa.String(length=255), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("categoria", sa.String(length=100), nullable=True),
        sa.Column("precio_venta", sa.Float(), nullable=False, server_default="0"),
        sa.Column("stock_actual", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stock_minimo", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("estado", sa.String(length=30), nullable=False, server_default="Activo"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("stock_actual >= 0", name="ck_joyas_stock_no_negativo"),
    )
    op.create_index("ix_joyas_codigo", "joyas", ["codigo"], unique=True)

    op.create_table(
        "clientes",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("nombre", sa.String(length=255), nullable=False),
        sa.Column("cedula", sa.String(length=50), nullable=True, unique=True),
        sa.Column("telefono", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table("ventas_dia", *_sale_columns())
    op.create_table(
        "items_venta_dia",
        *_sale_item_columns(),
        sa.Column("id_venta_dia", GUID(), sa.ForeignKey("ventas_dia.id"), nullable=False, index=True),
    )

    op.create_table(
        "ventas",
        *_sale_columns(),
        sa.Column("id_venta_dia_origen", GUID(), nullable=True, unique=True),
        sa.Column("fecha_registro", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "items_venta",
        *_sale_item_columns(),
        sa.Column("id_venta", GUID(), sa.ForeignKey("ventas.id"), nullable=False, index=True),
    )

    op.create_table(
        "movimientos_inventario",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("id_joya", GUID(), sa.ForeignKey("joyas.id"), nullable=False, index=True),
        sa.Column("tipo_movimiento", sa.String(length=20), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        sa.Column("stock_antes", sa.Integer(), nullable=False),
        sa.Column("stock_despues", sa.Integer(), nullable=False),
        sa.Column("motivo", sa.String(length=500), nullable=False),
        sa.Column("usuario", sa.String(length=150), nullable=True),
        sa.Column("id_usuario", GUID(), nullable=True),
        sa.Column("fecha_movimiento", sa.DateTime(), nullable=False, index=True),
        sa.CheckConstraint("stock_despues >= 0", name="ck_movimientos_stock_despues"),
    )

    op.create_table(
        "cuentas_por_cobrar",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("id_cliente", GUID(), sa.ForeignKey("clientes.id"), nullable=False, index=True),
        sa.Column("id_venta", GUID(), sa.ForeignKey("ventas.id"), nullable=True),
        sa.Column("monto_total", sa.Float(), nullable=False, server_default="0"),
        sa.Column("monto_pagado", sa.Float(), nullable=False, server_default="0"),
        sa.Column("saldo_pendiente", sa.Float(), nullable=False, server_default="0"),
        sa.Column("estado", sa.String(length=20), nullable=False, server_default="Pendiente"),
        sa.Column("fecha_vencimiento", sa.Date(), nullable=True),
        sa.Column("fecha_ultimo_pago", sa.DateTime(), nullable=True),
        sa.Column("notas", sa.Text(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "uq_cuentas_por_cobrar_pendiente_cliente",
        "cuentas_por_cobrar",
        ["id_cliente"],
        unique=True,
        sqlite_where=sa.text("estado = 'Pendiente'"),
        postgresql_where=sa.text("estado = 'Pendiente'"),
    )

    op.create_table(
        "movimientos_cuenta",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("id_cuenta", GUID(), sa.ForeignKey("cuentas_por_cobrar.id"), nullable=False, index=True),
        sa.Column("tipo", sa.String(length=20), nullable=False),
        sa.Column("monto", sa.Float(), nullable=False),
        sa.Column("id_venta", GUID(), nullable=True),
        sa.Column("id_abono", GUID(), nullable=True),
        sa.Column("descripcion", sa.String(length=500), nullable=True),
        sa.Column("usuario", sa.String(length=150), nullable=True),
        sa.Column("fecha_movimiento", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "abonos",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("id_cuenta", GUID(), sa.ForeignKey("cuentas_por_cobrar.id"), nullable=False, index=True),
        sa.Column("monto", sa.Float(), nullable=False),
        sa.Column("metodo_pago", sa.String(length=30), nullable=False),
        sa.Column("notas", sa.Text(), nullable=True),
        sa.Column("usuario", sa.String(length=150), nullable=True),
        sa.Column("id_usuario", GUID(), nullable=True),
        sa.Column("fecha_abono", sa.DateTime(), nullable=False, index=True),
        sa.Column("cerrado", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fecha_cierre", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "ingresos_extras",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("tipo", sa.String(length=30), nullable=False),
        sa.Column("monto", sa.Float(), nullable=False),
        sa.Column("metodo_pago", sa.String(length=30), nullable=False),
        sa.Column("descripcion", sa.String(length=500), nullable=False),
        sa.Column("notas", sa.Text(), nullable=True),
        sa.Column("usuario", sa.String(length=150), nullable=True),
        sa.Column("id_usuario", GUID(), nullable=True),
        sa.Column("fecha_ingreso", sa.DateTime(), nullable=False, index=True),
        sa.Column("cerrado", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fecha_cierre", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "devoluciones",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("id_venta", GUID(), sa.ForeignKey("ventas.id"), nullable=False, index=True),
        sa.Column("id_item_venta", GUID(), sa.ForeignKey("items_venta.id"), nullable=False, index=True),
        sa.Column("id_joya", GUID(), nullable=True),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        sa.Column("precio_unitario", sa.Float(), nullable=False),
        sa.Column("subtotal", sa.Float(), nullable=False),
        sa.Column("motivo", sa.String(length=500), nullable=False),
        sa.Column("tipo_devolucion", sa.String(length=30), nullable=False),
        sa.Column("metodo_reembolso", sa.String(length=30), nullable=True),
        sa.Column("estado", sa.String(length=20), nullable=False, server_default="Aprobada"),
        sa.Column("notas", sa.Text(), nullable=True),
        sa.Column("usuario", sa.String(length=150), nullable=True),
        sa.Column("id_usuario", GUID(), nullable=True),
        sa.Column("fecha_devolucion", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "cierres_caja",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("fecha_cierre", sa.DateTime(), nullable=False, index=True),
        sa.Column("usuario", sa.String(length=150), nullable=True),
        sa.Column("id_usuario", GUID(), nullable=True),
        sa.Column("total_ventas", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("monto_total_ventas", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_efectivo", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_tarjeta", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_transferencia", sa.Float(), nullable=False, server_default="0"),
        sa.Column("monto_abonos", sa.Float(), nullable=False, server_default="0"),
        sa.Column("monto_ingresos_extras", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_general", sa.Float(), nullable=False, server_default="0"),
        sa.Column("resumen", sa.JSON(), nullable=False),
    )

    op.create_table(
        "idempotency_records",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("user_id", GUID(), nullable=False, index=True),
        sa.Column("endpoint", sa.String(length=255), nullable=False),
        sa.Column("method", sa.String(length=16), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("request_hash", sa.String(length=64), nullable=False),
        sa.Column("state", sa.String(length=20), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=True),
        sa.Column("response_body", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("user_id", "endpoint", "method", "idempotency_key", name="uq_idempotency"),
    )

    op.create_table(
        "audit_events",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("user_id", GUID(), nullable=True, index=True),
        sa.Column("trace_id", sa.String(length=64), nullable=True),
        sa.Column("actor", sa.String(length=150), nullable=False),
        sa.Column("action", sa.String(length=255), nullable=False, index=True),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.String(length=255), nullable=True),
        sa.Column("before_payload", sa.JSON(), nullable=True),
        sa.Column("after_payload", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("result", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("idempotency_records")
    op.drop_table("cierres_caja")
    op.drop_table("devoluciones")
    op.drop_table("ingresos_extras")
    op.drop_table("abonos")
    op.drop_table("movimientos_cuenta")
    op.drop_index("uq_cuentas_por_cobrar_pendiente_cliente", table_name="cuentas_por_cobrar")
    op.drop_table("cuentas_por_cobrar")
    op.drop_table("movimientos_inventario")
    op.drop_table("items_venta")
    op.drop_table("ventas")
    op.drop_table("items_venta_dia")
    op.drop_table("ventas_dia")
    op.drop_table("clientes")
    op.drop_index("ix_joyas_codigo", table_name="joyas")
    op.drop_table("joyas")
    op.drop_index("ix_usuarios_username", table_name="usuarios")
    op.drop_table("usuarios")
