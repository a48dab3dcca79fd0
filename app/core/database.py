# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
SQLAlchemy engine factory and the tables the scheduling store touches.
The hosted backend owns the real schema; these definitions only bootstrap
a local database when DB_AUTO_CREATE is set.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings

metadata = MetaData()

members = Table(
    "members",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("org_id", String(36), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
)

service_types = Table(
    "service_types",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("org_id", String(36), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("frequency", String(20), nullable=False, default="weekly"),
    Column("description", Text),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

service_assignments = Table(
    "service_assignments",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("org_id", String(36), nullable=False, index=True),
    Column("service_type_id", String(36), ForeignKey("service_types.id"), nullable=False),
    Column("member_id", String(36), ForeignKey("members.id"), nullable=False),
    Column("service_date", Date, nullable=False),
    Column("sermon_title", String(255)),
    Column("notes", Text),
    Column("status", String(20), nullable=False, default="scheduled"),
    CheckConstraint(
        "status IN ('scheduled', 'completed', 'cancelled')",
        name="ck_service_assignments_status",
    ),
)


def create_db_engine(url: str | None = None) -> Engine:
    """Build an engine; in-memory SQLite shares one connection across threads."""
    database_url = url or settings.DATABASE_URL
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.MAX_OVERFLOW,
        pool_recycle=settings.POOL_RECYCLE,
    )


def init_schema(engine: Engine) -> None:
    metadata.create_all(engine)
