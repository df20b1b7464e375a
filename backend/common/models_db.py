"""SQLAlchemy models for PostgreSQL database."""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.common.db import Base, IdType


class Company(Base):
    """Customer company mentioned in sales calls.

    ``name`` is matched case-insensitively during reconciliation and is not
    unique, so duplicates may exist.
    """

    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )

    calls: Mapped[List["Call"]] = relationship("Call", back_populates="company")


class Call(Base):
    """Model for storing one submitted sales-call transcript."""

    __tablename__ = "calls"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    transcript_text: Mapped[str] = mapped_column(Text, nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    call_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    call_date: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )
    created_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )

    company: Mapped["Company"] = relationship("Company", back_populates="calls")
    insights: Mapped[List["Insight"]] = relationship(
        "Insight",
        back_populates="call",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_calls_company_id", "company_id"),
    )


class Insight(Base):
    """Customer pain point extracted from a call."""

    __tablename__ = "extracted_insights"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    call_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("calls.id", ondelete="CASCADE"),
        nullable=False,
    )
    pain_point_description: Mapped[str] = mapped_column(Text, nullable=False)
    raw_quote: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    person_mentioned: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    urgency_level: Mapped[int] = mapped_column(Integer, nullable=False)
    mentioned_timeline: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    follow_up_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="to_do")
    created_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )

    call: Mapped["Call"] = relationship("Call", back_populates="insights")

    __table_args__ = (
        Index("idx_extracted_insights_call_id", "call_id"),
    )


Index("idx_companies_lower_name", func.lower(Company.name))
