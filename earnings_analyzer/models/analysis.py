# =============================================================================
# Analysis Domain Models - Pydantic V2
# =============================================================================
#
# Three shapes describe one upload-to-analysis unit:
#
#   ReportMetadata  - filing metadata derived before analysis starts
#   AnalysisResult  - the structured LLM analysis (all fields required)
#   AnalysisRecord  - what the store tracks: metadata + lifecycle flags +
#                     the analysis payload once it arrives
#
# AnalysisPatch is the typed partial update applied by the store. It has no
# identity or metadata fields, so an update cannot alter them.
#
# LIFECYCLE:
#   add()              → processing=True,  processed=False, error=None
#   terminal success   → processing=False, processed=True,  <payload>
#   terminal failure   → processing=False, processed=False, error=<msg>
#
# Exactly one of processing, processed or a set error holds for every
# record; AnalysisRecord and AnalysisStore.update both reject anything else.
# =============================================================================

from __future__ import annotations

import enum

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator


class CompanyType(str, enum.Enum):
    """Selects which analysis prompt variant is used."""

    AI_APPLICATION = "ai_application"
    AI_SUPPLY_CHAIN = "ai_supply_chain"

    @property
    def label(self) -> str:
        return "AI应用公司" if self is CompanyType.AI_APPLICATION else "AI供应链公司"


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class ReportMetadata(BaseModel):
    """Filing metadata and consensus figures read from the report text."""

    company_name: str = Field(min_length=1)
    company_symbol: str = Field(min_length=1)
    report_type: str = Field(description="e.g. 10-Q, 10-K, 8-K earnings release")
    fiscal_year: int = Field(ge=1900, le=2200)
    fiscal_quarter: int | None = Field(default=None, ge=1, le=4)
    filing_date: str

    # Consensus (market-expected) figures, if the report or release cites them
    revenue: float | None = None
    eps: float | None = None
    operating_income: float | None = None

    @property
    def period(self) -> str:
        if self.fiscal_quarter:
            return f"Q{self.fiscal_quarter} {self.fiscal_year}"
        return f"FY {self.fiscal_year}"

    def consensus(self) -> dict[str, float]:
        figures = {
            "revenue": self.revenue,
            "eps": self.eps,
            "operatingIncome": self.operating_income,
        }
        return {k: v for k, v in figures.items() if v is not None}


# ---------------------------------------------------------------------------
# Structured Analysis Payload
# ---------------------------------------------------------------------------


class ResultsTableRow(BaseModel):
    metric: str
    actual: str
    consensus: str
    delta: str
    assessment: str


class DriverDetail(BaseModel):
    category: str
    title: str
    change: str
    magnitude: str
    reason: str


class Drivers(BaseModel):
    demand: DriverDetail
    monetization: DriverDetail
    efficiency: DriverDetail


class InvestmentROI(BaseModel):
    capex_change: str
    opex_change: str
    investment_direction: str
    roi_evidence: list[str]
    management_commitment: str


class SustainabilityRisks(BaseModel):
    sustainable_drivers: list[str]
    main_risks: list[str]
    checkpoints: list[str]


class ModelImpact(BaseModel):
    revenue_adjustment: str
    capex_adjustment: str
    valuation_change: str
    logic_chain: str


class FinalJudgment(BaseModel):
    confidence: str
    concerns: str
    net_impact: str
    recommendation: str


class AnalysisResult(BaseModel):
    """The full structured analysis returned by the Analysis Engine."""

    one_line_conclusion: str
    results_summary: str
    results_table: list[ResultsTableRow]
    results_explanation: str
    drivers_summary: str
    drivers: Drivers
    investment_roi: InvestmentROI
    sustainability_risks: SustainabilityRisks
    model_impact: ModelImpact
    final_judgment: FinalJudgment


ANALYSIS_FIELDS: tuple[str, ...] = tuple(AnalysisResult.model_fields)


# ---------------------------------------------------------------------------
# Store Record and Patch
# ---------------------------------------------------------------------------


class AnalysisPatch(BaseModel):
    """
    Partial update for an AnalysisRecord.

    Only fields explicitly set (``model_fields_set``) are applied, so
    ``AnalysisPatch(error=None)`` clears an error while ``AnalysisPatch()``
    changes nothing.
    """

    model_config = ConfigDict(extra="forbid")

    processing: bool | None = None
    processed: bool | None = None
    error: str | None = None

    one_line_conclusion: str | None = None
    results_summary: str | None = None
    results_table: list[ResultsTableRow] | None = None
    results_explanation: str | None = None
    drivers_summary: str | None = None
    drivers: Drivers | None = None
    investment_roi: InvestmentROI | None = None
    sustainability_risks: SustainabilityRisks | None = None
    model_impact: ModelImpact | None = None
    final_judgment: FinalJudgment | None = None

    @classmethod
    def success(cls, result: AnalysisResult) -> AnalysisPatch:
        """Terminal patch for a completed analysis."""
        payload = {name: getattr(result, name) for name in ANALYSIS_FIELDS}
        return cls(processing=False, processed=True, error=None, **payload)

    @classmethod
    def failure(cls, message: str) -> AnalysisPatch:
        """Terminal patch for a failed analysis."""
        return cls(processing=False, processed=False, error=message)

    def changes(self) -> dict:
        """
        Explicitly-set fields, keeping nested values as model instances.
        A lifecycle flag explicitly set to None is dropped.
        """
        changes = {name: getattr(self, name) for name in self.model_fields_set}
        for flag in ("processing", "processed"):
            if flag in changes and changes[flag] is None:
                del changes[flag]
        return changes


class AnalysisRecord(BaseModel):
    """
    One tracked upload. Frozen: the store replaces the stored instance on
    every update, so a record handed to a reader never changes under it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: AwareDatetime

    company_name: str
    company_symbol: str
    company_type: CompanyType
    report_type: str
    fiscal_year: int
    fiscal_quarter: int | None = None
    filing_date: str

    processing: bool = True
    processed: bool = False
    error: str | None = None

    one_line_conclusion: str | None = None
    results_summary: str | None = None
    results_table: list[ResultsTableRow] | None = None
    results_explanation: str | None = None
    drivers_summary: str | None = None
    drivers: Drivers | None = None
    investment_roi: InvestmentROI | None = None
    sustainability_risks: SustainabilityRisks | None = None
    model_impact: ModelImpact | None = None
    final_judgment: FinalJudgment | None = None

    @model_validator(mode="after")
    def _check_lifecycle(self) -> AnalysisRecord:
        problem = lifecycle_violation(self.processing, self.processed, self.error)
        if problem:
            raise ValueError(problem)
        return self

    @property
    def status(self) -> str:
        """One of "processing", "processed" or "error"."""
        if self.processing:
            return "processing"
        if self.processed:
            return "processed"
        return "error"

    @property
    def is_terminal(self) -> bool:
        return not self.processing


def lifecycle_violation(processing: bool, processed: bool, error: str | None) -> str | None:
    """
    Describe why a flag combination is not a valid lifecycle stage, or
    return None. Exactly one of processing, processed or a set error holds.
    """
    stages = [
        name for name, active in (
            ("processing", processing),
            ("processed", processed),
            ("error", error is not None),
        ) if active
    ]
    if len(stages) == 1:
        return None
    if not stages:
        return "record must be processing, processed or carry an error"
    return f"record cannot be {' and '.join(stages)} at once"
