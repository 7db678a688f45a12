"""SQLAlchemy async database models for Habitta.

Covers the prediction side (properties, enrichment snapshots, reference
tables, predictions) and the planner side (homes, systems, permits, signals,
renovation items, maintenance tasks).
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


def _new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class PropertyModel(Base):
    """Property reference row; year_built is the anchor for age inference."""

    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    address_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(Text)
    state: Mapped[str | None] = mapped_column(Text)
    year_built: Mapped[int | None] = mapped_column(Integer)
    square_feet: Mapped[int | None] = mapped_column(Integer)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Property(address_id={self.address_id}, year_built={self.year_built})>"


class EnrichmentSnapshotModel(Base):
    """Raw provider payload captured for a property."""

    __tablename__ = "enrichment_snapshots"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    address_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    provider: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    fetched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_snapshots_address_provider", "address_id", "provider", "fetched_at"),
    )


class LifespanReferenceModel(Base):
    """Lifespan reference row per (system type, subtype, climate zone)."""

    __tablename__ = "lifespan_reference"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    system_type: Mapped[str] = mapped_column(Text, nullable=False)
    system_subtype: Mapped[str] = mapped_column(Text, nullable=False)
    climate_zone: Mapped[str] = mapped_column(Text, nullable=False)
    min_years: Mapped[float] = mapped_column(Float, nullable=False)
    typical_years: Mapped[float] = mapped_column(Float, nullable=False)
    max_years: Mapped[float] = mapped_column(Float, nullable=False)
    quality_tier: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint(
            "system_type", "system_subtype", "climate_zone", name="uq_lifespan_reference"
        ),
    )


class ClimateFactorModel(Base):
    """Climate multiplier per (zone, factor type)."""

    __tablename__ = "climate_factors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    climate_zone: Mapped[str] = mapped_column(Text, nullable=False)
    factor_type: Mapped[str] = mapped_column(Text, nullable=False)
    multiplier: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("climate_zone", "factor_type", name="uq_climate_factor"),
    )


class PredictionModel(Base):
    """One predicted field for a property under a given model version."""

    __tablename__ = "predictions"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    address_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    field: Mapped[str] = mapped_column(Text, nullable=False)
    predicted_value: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    provenance: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    prediction_run_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    model_version: Mapped[str] = mapped_column(Text, nullable=False)
    predicted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("address_id", "field", "model_version", name="uq_prediction_field"),
    )

    def __repr__(self) -> str:
        return f"<Prediction({self.address_id}:{self.field}={self.predicted_value} @{self.confidence})>"


class HomeModel(Base):
    """A user's home; property_id links it to enrichment-derived signals."""

    __tablename__ = "homes"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(Text)
    state: Mapped[str | None] = mapped_column(Text)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    property_id: Mapped[str | None] = mapped_column(Text, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class HomeSystemModel(Base):
    """A system known to be present at a home (pool, solar, hvac, ...)."""

    __tablename__ = "home_systems"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    home_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(Text, nullable=False)


class PermitModel(Base):
    """Permit recorded against a home, used to discover systems it has."""

    __tablename__ = "permits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    home_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    permit_number: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    trade: Mapped[str | None] = mapped_column(Text)
    system_tags: Mapped[list | None] = mapped_column(JSON)
    issue_date: Mapped[date | None] = mapped_column(Date)


class MaintenanceSignalModel(Base):
    """Dated property signal such as condition_score or tlc."""

    __tablename__ = "maintenance_signals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    signal: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[float | None] = mapped_column(Float)
    asof_date: Mapped[date] = mapped_column(Date, nullable=False)


class RenovationItemModel(Base):
    """Renovation recommendation from property enrichment."""

    __tablename__ = "renovation_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    system: Mapped[str | None] = mapped_column(Text)
    urgency: Mapped[str | None] = mapped_column(Text)
    est_cost: Mapped[float | None] = mapped_column(Float)
    asof_date: Mapped[date] = mapped_column(Date, nullable=False)


class MaintenanceTaskModel(Base):
    """Persisted maintenance task. Generated rows start as ``pending``."""

    __tablename__ = "maintenance_tasks"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    home_id: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str | None] = mapped_column(Text)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    system_type: Mapped[str | None] = mapped_column(Text)
    priority: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending")
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    cost: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("idx_tasks_home_due", "home_id", "due_date"),)

    def __repr__(self) -> str:
        return f"<MaintenanceTask(home={self.home_id}, title={self.title!r}, due={self.due_date})>"
