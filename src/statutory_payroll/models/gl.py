"""GL override rule models."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statutory_payroll.gl.rules import (
    ConditionOperator,
    DimensionType,
    GLOverrideCondition,
    GLOverrideRule,
    GLOverrideTarget,
    OverrideType,
)
from statutory_payroll.models.base import Base, TimestampMixin, utcnow


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class GLOverrideRuleModel(Base, TimestampMixin):
    """Stored GL override rule."""

    __tablename__ = "gl_override_rule"

    rule_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    rule_code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    rule_name: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    override_type: Mapped[str] = mapped_column(String, nullable=False)
    applies_to_debit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    applies_to_credit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    effective_start: Mapped[date] = mapped_column(Date, nullable=False)
    effective_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Refreshed on every update; orders rules of equal priority
    defined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "override_type IN ('account', 'segment', 'full_string')",
            name="gl_override_rule_type_check",
        ),
        CheckConstraint(
            "effective_end IS NULL OR effective_end >= effective_start",
            name="gl_override_rule_dates_check",
        ),
    )

    # Relationships
    conditions: Mapped[list[GLOverrideConditionModel]] = relationship(
        back_populates="rule",
        cascade="all, delete-orphan",
        order_by="GLOverrideConditionModel.position",
        lazy="selectin",
    )
    target: Mapped[GLOverrideTargetModel | None] = relationship(
        back_populates="rule",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )

    def to_rule(self) -> GLOverrideRule:
        """Convert to the resolver's immutable rule type."""
        target = self.target
        return GLOverrideRule(
            rule_id=str(self.rule_id),
            rule_code=self.rule_code,
            rule_name=self.rule_name,
            description=self.description,
            priority=self.priority,
            override_type=OverrideType(self.override_type),
            conditions=tuple(
                GLOverrideCondition(
                    dimension=DimensionType(c.dimension_type),
                    operator=ConditionOperator(c.operator),
                    values=tuple(c.values_json or []),
                )
                for c in self.conditions
            ),
            target=GLOverrideTarget(
                debit_account=target.target_debit_account if target else None,
                credit_account=target.target_credit_account if target else None,
                segment_overrides=dict(target.segment_overrides_json or {}) if target else {},
                custom_gl_string=target.custom_gl_string if target else None,
            ),
            applies_to_debit=self.applies_to_debit,
            applies_to_credit=self.applies_to_credit,
            effective_start=self.effective_start,
            effective_end=self.effective_end,
            is_active=self.is_active,
            defined_at=_as_utc(self.defined_at),
        )


class GLOverrideConditionModel(Base):
    """One condition of a stored rule."""

    __tablename__ = "gl_override_condition"

    condition_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    rule_id: Mapped[UUID] = mapped_column(
        ForeignKey("gl_override_rule.rule_id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dimension_type: Mapped[str] = mapped_column(String, nullable=False)
    operator: Mapped[str] = mapped_column(String, nullable=False)
    values_json: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint(
            "operator IN ('equals', 'not_equals', 'in', 'not_in', 'any')",
            name="gl_override_condition_operator_check",
        ),
    )

    # Relationships
    rule: Mapped[GLOverrideRuleModel] = relationship(back_populates="conditions")


class GLOverrideTargetModel(Base):
    """Replacement account(s) or string of a stored rule."""

    __tablename__ = "gl_override_target"

    target_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    rule_id: Mapped[UUID] = mapped_column(
        ForeignKey("gl_override_rule.rule_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    target_debit_account: Mapped[str | None] = mapped_column(String, nullable=True)
    target_credit_account: Mapped[str | None] = mapped_column(String, nullable=True)
    segment_overrides_json: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    custom_gl_string: Mapped[str | None] = mapped_column(String, nullable=True)

    # Relationships
    rule: Mapped[GLOverrideRuleModel] = relationship(back_populates="target")
