# =============================================================================
# Database Models - SQLAlchemy ORM
# =============================================================================
#
# Durable-storage variant of the analysis registry.
#
# SCHEMA OVERVIEW:
#
# ┌──────────────┐       ┌────────────────────┐       ┌──────────────────────┐
# │  companies   │       │ financial_reports  │       │ analysis_results     │
# ├──────────────┤       ├────────────────────┤       ├──────────────────────┤
# │ id (PK)      │──1:N─▶│ id (PK)            │──1:N─▶│ id (PK)              │
# │ symbol (uq)  │       │ company_id (FK)    │       │ report_id (FK)       │
# │ name         │       │ report_type        │       │ analysis_type        │
# │ sector       │       │ fiscal_year        │       │ analysis_content     │
# │ market_cap   │       │ fiscal_quarter     │       │ key_insights         │
# │ created_at   │       │ filing_date        │       │ risk_factors         │
# └──────────────┘       │ document_size      │       │ model_impact         │
#                        │ processed          │       │ created_at           │
#                        │ created_at         │       └──────────────────────┘
#                        └────────────────────┘
#
# JSON columns use the generic `JSON` type so the same models run on
# PostgreSQL and on SQLite (tests, single-node installs).
# =============================================================================

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


class Company(Base):
    """A listed company, unique by ticker symbol."""

    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sector: Mapped[str | None] = mapped_column(String(100), nullable=True)
    market_cap: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    reports: Mapped[list["FinancialReport"]] = relationship(
        "FinancialReport",
        back_populates="company",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, symbol='{self.symbol}')>"


class FinancialReport(Base):
    """One filing (10-K, 10-Q, release) of a company."""

    __tablename__ = "financial_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    report_type: Mapped[str] = mapped_column(String(50), nullable=False)
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)
    fiscal_quarter: Mapped[int | None] = mapped_column(Integer, nullable=True)
    filing_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    document_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    document_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    company: Mapped[Company] = relationship("Company", back_populates="reports")
    analyses: Mapped[list["ReportAnalysis"]] = relationship(
        "ReportAnalysis",
        back_populates="report",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return (
            f"<FinancialReport(id={self.id}, company_id={self.company_id}, "
            f"{self.report_type} FY{self.fiscal_year} Q{self.fiscal_quarter})>"
        )


class ReportAnalysis(Base):
    """A stored LLM analysis of one report. Latest row wins on read."""

    __tablename__ = "analysis_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("financial_reports.id", ondelete="CASCADE"),
        nullable=False,
    )
    analysis_type: Mapped[str] = mapped_column(String(50), nullable=False)
    analysis_content: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    key_insights: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    risk_factors: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    model_impact: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    report: Mapped[FinancialReport] = relationship(
        "FinancialReport", back_populates="analyses",
    )
