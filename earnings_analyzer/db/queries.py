# =============================================================================
# Durable Storage Queries
# =============================================================================
#
# Async query helpers over companies / financial_reports / analysis_results.
# Every function takes the session from its caller and never commits;
# the caller's session scope owns the transaction.
# =============================================================================

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from earnings_analyzer.db.models import Company, FinancialReport, ReportAnalysis
from earnings_analyzer.models.analysis import (
    AnalysisResult,
    CompanyType,
    ReportMetadata,
)

logger = logging.getLogger(__name__)


async def get_company_by_symbol(session: AsyncSession, symbol: str) -> Company | None:
    result = await session.execute(
        select(Company).where(Company.symbol == symbol),
    )
    return result.scalar_one_or_none()


async def create_company(
    session: AsyncSession,
    symbol: str,
    name: str,
    sector: str | None = None,
    market_cap: float | None = None,
) -> Company:
    company = Company(symbol=symbol, name=name, sector=sector, market_cap=market_cap)
    session.add(company)
    await session.flush()
    return company


async def create_financial_report(
    session: AsyncSession,
    company_id: int,
    report_type: str,
    fiscal_year: int,
    fiscal_quarter: int | None = None,
    filing_date: date | None = None,
    document_url: str | None = None,
    document_size: int | None = None,
) -> FinancialReport:
    report = FinancialReport(
        company_id=company_id,
        report_type=report_type,
        fiscal_year=fiscal_year,
        fiscal_quarter=fiscal_quarter,
        filing_date=filing_date,
        document_url=document_url,
        document_size=document_size,
        processed=False,
    )
    session.add(report)
    await session.flush()
    return report


async def create_analysis_result(
    session: AsyncSession,
    report_id: int,
    analysis_type: str,
    analysis_content: dict[str, Any],
    key_insights: Any = None,
    risk_factors: Any = None,
    model_impact: Any = None,
) -> ReportAnalysis:
    row = ReportAnalysis(
        report_id=report_id,
        analysis_type=analysis_type,
        analysis_content=analysis_content,
        key_insights=key_insights,
        risk_factors=risk_factors,
        model_impact=model_impact,
    )
    session.add(row)
    await session.flush()
    return row


async def get_reports_by_company(
    session: AsyncSession,
    company_id: int,
) -> list[FinancialReport]:
    result = await session.execute(
        select(FinancialReport)
        .where(FinancialReport.company_id == company_id)
        .order_by(
            FinancialReport.fiscal_year.desc(),
            FinancialReport.fiscal_quarter.desc(),
        ),
    )
    return list(result.scalars().all())


async def get_analysis_by_report_id(
    session: AsyncSession,
    report_id: int,
) -> ReportAnalysis | None:
    result = await session.execute(
        select(ReportAnalysis)
        .where(ReportAnalysis.report_id == report_id)
        .order_by(ReportAnalysis.created_at.desc(), ReportAnalysis.id.desc())
        .limit(1),
    )
    return result.scalar_one_or_none()


async def update_report_processed(
    session: AsyncSession,
    report_id: int,
    processed: bool,
) -> None:
    await session.execute(
        update(FinancialReport)
        .where(FinancialReport.id == report_id)
        .values(processed=processed),
    )


async def get_all_companies(session: AsyncSession) -> list[Company]:
    result = await session.execute(select(Company).order_by(Company.name.asc()))
    return list(result.scalars().all())


async def get_recent_analyses(
    session: AsyncSession,
    limit: int = 10,
) -> list[dict[str, Any]]:
    """Latest analyses joined with their report and company columns."""
    result = await session.execute(
        select(
            ReportAnalysis,
            FinancialReport.report_type,
            FinancialReport.fiscal_year,
            FinancialReport.fiscal_quarter,
            Company.name.label("company_name"),
            Company.symbol.label("company_symbol"),
        )
        .join(FinancialReport, ReportAnalysis.report_id == FinancialReport.id)
        .join(Company, FinancialReport.company_id == Company.id)
        .order_by(ReportAnalysis.created_at.desc(), ReportAnalysis.id.desc())
        .limit(limit),
    )
    rows = []
    for analysis, report_type, fiscal_year, fiscal_quarter, name, symbol in result.all():
        rows.append({
            "id": analysis.id,
            "report_id": analysis.report_id,
            "analysis_type": analysis.analysis_type,
            "analysis_content": analysis.analysis_content,
            "created_at": analysis.created_at,
            "report_type": report_type,
            "fiscal_year": fiscal_year,
            "fiscal_quarter": fiscal_quarter,
            "company_name": name,
            "company_symbol": symbol,
        })
    return rows


async def list_companies_with_reports(session: AsyncSession) -> list[dict[str, Any]]:
    """Every company with its reports, each carrying its latest analysis."""
    companies = []
    for company in await get_all_companies(session):
        reports = []
        for report in await get_reports_by_company(session, company.id):
            analysis = await get_analysis_by_report_id(session, report.id)
            reports.append({
                "id": report.id,
                "company_id": report.company_id,
                "report_type": report.report_type,
                "fiscal_year": report.fiscal_year,
                "fiscal_quarter": report.fiscal_quarter,
                "filing_date": report.filing_date,
                "document_size": report.document_size,
                "processed": report.processed,
                "created_at": report.created_at,
                "analysis": analysis.analysis_content if analysis else None,
            })
        companies.append({
            "id": company.id,
            "symbol": company.symbol,
            "name": company.name,
            "sector": company.sector,
            "market_cap": company.market_cap,
            "created_at": company.created_at,
            "reports": reports,
        })
    return companies


async def persist_analysis(
    session: AsyncSession,
    metadata: ReportMetadata,
    company_type: CompanyType,
    result: AnalysisResult,
    document_size: int | None = None,
) -> ReportAnalysis:
    """
    Write one completed analysis: get-or-create the company, add the report,
    add the analysis row and mark the report processed.
    """
    company = await get_company_by_symbol(session, metadata.company_symbol)
    if company is None:
        company = await create_company(
            session,
            symbol=metadata.company_symbol,
            name=metadata.company_name,
        )

    report = await create_financial_report(
        session,
        company_id=company.id,
        report_type=metadata.report_type,
        fiscal_year=metadata.fiscal_year,
        fiscal_quarter=metadata.fiscal_quarter,
        filing_date=_parse_filing_date(metadata.filing_date),
        document_size=document_size,
    )

    content = result.model_dump(mode="json")
    row = await create_analysis_result(
        session,
        report_id=report.id,
        analysis_type=company_type.value,
        analysis_content=content,
        key_insights=content["sustainability_risks"]["sustainable_drivers"],
        risk_factors=content["sustainability_risks"]["main_risks"],
        model_impact=content["model_impact"],
    )
    await update_report_processed(session, report.id, True)

    logger.info(
        "Persisted analysis %d for %s report %d",
        row.id, company.symbol, report.id,
    )
    return row


def _parse_filing_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        logger.warning("Unparseable filing date %r; storing NULL", value)
        return None
