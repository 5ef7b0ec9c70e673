"""Versioned reference catalog models."""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statutory_payroll.models.base import Base, TimestampMixin


class CatalogRule(Base, TimestampMixin):
    """A catalog key (``reference_unit``, ``isr_table:monthly``, ``isn:CDMX``...)."""

    __tablename__ = "catalog_rule"

    rule_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    rule_key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String, nullable=True)

    # Relationships
    versions: Mapped[list[CatalogRuleVersion]] = relationship(
        back_populates="rule",
        cascade="all, delete-orphan",
        order_by="CatalogRuleVersion.effective_start",
    )


class CatalogRuleVersion(Base, TimestampMixin):
    """Versioned catalog payload with effective dating."""

    __tablename__ = "catalog_rule_version"

    rule_version_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    rule_id: Mapped[UUID] = mapped_column(
        ForeignKey("catalog_rule.rule_id", ondelete="CASCADE"),
        nullable=False,
    )
    effective_start: Mapped[date] = mapped_column(Date, nullable=False)
    effective_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    source_url: Mapped[str | None] = mapped_column(String, nullable=True)
    payload_json: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint(
            "effective_end IS NULL OR effective_end >= effective_start",
            name="catalog_rule_version_dates_check",
        ),
        UniqueConstraint("rule_id", "effective_start", name="catalog_rule_version_start_uq"),
    )

    # Relationships
    rule: Mapped[CatalogRule] = relationship(back_populates="versions")

    def is_active_on(self, as_of_date: date) -> bool:
        """Check if version is active on a given date."""
        if self.effective_start > as_of_date:
            return False
        if self.effective_end is not None and self.effective_end < as_of_date:
            return False
        return True
