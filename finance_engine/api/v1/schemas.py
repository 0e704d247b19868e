"""Pydantic schemas for API request/response validation"""

from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from finance_engine.domain.allocation import AllocationBucket
from finance_engine.domain.goals import GoalPortfolioSummary, GoalPriorityRecommendation
from finance_engine.domain.loans import (
    LoanPortfolioProjection,
    LoanStrategyCandidate,
    LoanWhatIfResult,
    RefinanceResult,
)
from finance_engine.domain.models import (
    Account,
    Bill,
    Cadence,
    Card,
    CustomUnit,
    DebtCycleProjection,
    DebtPortfolioSummary,
    FinanceRecords,
    ForecastWindow,
    FundingSource,
    Goal,
    GoalMilestone,
    Income,
    IntegrityCheck,
    Loan,
    LoanPaymentEvent,
    MinimumPaymentMode,
    PayoffCandidate,
    Purchase,
    PurchaseDuplicateMatch,
    ReallocationSuggestion,
    RecurringAmount,
    RecurringCandidate,
    ReconciliationStatus,
    ResolutionAction,
    RiskAlert,
)
from finance_engine.domain.splits import SplitLine, SplitTemplateLine
from finance_engine.domain.validation import AllocationRule


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class RecurringAmountSchema(BaseModel):
    amount: float
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[int] = Field(None, ge=1)
    custom_unit: Optional[CustomUnit] = None

    def to_domain(self) -> RecurringAmount:
        return RecurringAmount(**self.model_dump())


class CardSchema(BaseModel):
    """Credit card record"""

    card_id: str = Field(..., min_length=1)
    name: str
    credit_limit: float = Field(0.0, ge=0)
    used_limit: float = 0.0
    statement_balance: Optional[float] = None
    pending_charges: Optional[float] = None
    minimum_payment_mode: MinimumPaymentMode = MinimumPaymentMode.FIXED
    minimum_payment: float = Field(0.0, ge=0)
    minimum_percent: float = Field(0.0, ge=0, le=100)
    extra_payment: float = Field(0.0, ge=0)
    spend_per_month: float = Field(0.0, ge=0)
    apr: float = Field(0.0, ge=0, description="Annual percentage rate, e.g. 24 for 24%")
    due_day: Optional[int] = Field(None, ge=1, le=31)
    statement_day: Optional[int] = Field(None, ge=1, le=31)

    def to_domain(self) -> Card:
        return Card(**self.model_dump())


class LoanSchema(BaseModel):
    """Loan record, optionally carrying a bundled subscription"""

    loan_id: str = Field(..., min_length=1)
    name: str
    balance: float = Field(0.0, ge=0)
    principal_balance: Optional[float] = Field(None, ge=0)
    accrued_interest: Optional[float] = Field(None, ge=0)
    apr: float = Field(0.0, ge=0)
    minimum_payment_mode: MinimumPaymentMode = MinimumPaymentMode.FIXED
    minimum_payment: float = Field(0.0, ge=0)
    minimum_percent: float = Field(0.0, ge=0, le=100)
    extra_payment: float = Field(0.0, ge=0)
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[int] = Field(None, ge=1)
    custom_unit: Optional[CustomUnit] = None
    due_day: int = Field(1, ge=1, le=31)
    subscription_cost: float = Field(0.0, ge=0)
    subscription_payment_count: Optional[int] = Field(None, ge=1)
    subscription_outstanding: Optional[float] = Field(None, ge=0)

    def to_domain(self) -> Loan:
        return Loan(**self.model_dump())


class LoanPaymentEventSchema(BaseModel):
    loan_id: str
    amount: float = Field(..., ge=0)
    occurred_on: date

    def to_domain(self) -> LoanPaymentEvent:
        return LoanPaymentEvent(**self.model_dump())


class PurchaseSchema(BaseModel):
    purchase_id: str = Field(..., min_length=1)
    item: str
    amount: float
    purchase_date: Optional[date] = None
    category: str = "uncategorized"
    ownership: str = "shared"
    reconciliation_status: ReconciliationStatus = ReconciliationStatus.POSTED
    notes: str = ""
    created_at: float = Field(0.0, description="Creation timestamp; earlier record is the duplicate primary")

    def to_domain(self) -> Purchase:
        return Purchase(**self.model_dump())


class FundingSourceSchema(BaseModel):
    source_type: Literal["account", "card", "income"]
    source_id: str
    allocation_percent: Optional[float] = None

    def to_domain(self) -> FundingSource:
        return FundingSource(**self.model_dump())


class GoalSchema(BaseModel):
    """Savings goal record"""

    goal_id: str = Field(..., min_length=1)
    title: str
    target_amount: float = Field(..., ge=0)
    current_amount: float = Field(0.0, ge=0)
    target_date: Optional[date] = None
    created_at: date
    contribution_amount: float = Field(0.0, ge=0)
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[float] = Field(None, gt=0, description="Rounded to whole units")
    custom_unit: Optional[CustomUnit] = None
    paused: bool = False
    funding_sources: List[FundingSourceSchema] = Field(default_factory=list)
    priority: Literal["high", "medium", "low"] = "medium"
    goal_type: Literal["emergency_fund", "sinking_fund", "debt_payoff", "big_purchase"] = "sinking_fund"

    def to_domain(self) -> Goal:
        fields = self.model_dump(exclude={"funding_sources"})
        return Goal(**fields, funding_sources=tuple(s.to_domain() for s in self.funding_sources))


class IncomeSchema(BaseModel):
    income_id: str = Field(..., min_length=1)
    source: str
    amount: float = Field(0.0, ge=0)
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[int] = Field(None, ge=1)
    custom_unit: Optional[CustomUnit] = None
    gross_amount: Optional[float] = Field(None, ge=0)
    tax_amount: Optional[float] = Field(None, ge=0)
    national_insurance_amount: Optional[float] = Field(None, ge=0)
    pension_amount: Optional[float] = Field(None, ge=0)

    def to_domain(self) -> Income:
        return Income(**self.model_dump())


class BillSchema(BaseModel):
    bill_id: str = Field(..., min_length=1)
    name: str
    amount: float = Field(0.0, ge=0)
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[int] = Field(None, ge=1)
    custom_unit: Optional[CustomUnit] = None

    def to_domain(self) -> Bill:
        return Bill(**self.model_dump())


class AccountSchema(BaseModel):
    account_id: str = Field(..., min_length=1)
    name: str
    account_type: str = Field("checking", description="'debt' accounts count toward liabilities")
    balance: float = 0.0
    liquid: bool = False

    def to_domain(self) -> Account:
        return Account(**self.model_dump())


class FinanceRecordsSchema(BaseModel):
    incomes: List[IncomeSchema] = Field(default_factory=list)
    bills: List[BillSchema] = Field(default_factory=list)
    cards: List[CardSchema] = Field(default_factory=list)
    loans: List[LoanSchema] = Field(default_factory=list)
    purchases: List[PurchaseSchema] = Field(default_factory=list)
    accounts: List[AccountSchema] = Field(default_factory=list)
    goals: List[GoalSchema] = Field(default_factory=list)

    def to_domain(self) -> FinanceRecords:
        return FinanceRecords(
            incomes=tuple(i.to_domain() for i in self.incomes),
            bills=tuple(b.to_domain() for b in self.bills),
            cards=tuple(c.to_domain() for c in self.cards),
            loans=tuple(loan.to_domain() for loan in self.loans),
            purchases=tuple(p.to_domain() for p in self.purchases),
            accounts=tuple(a.to_domain() for a in self.accounts),
            goals=tuple(g.to_domain() for g in self.goals),
        )


# ---------------------------------------------------------------------------
# Cadence
# ---------------------------------------------------------------------------


class CadenceRequest(BaseModel):
    """Request body for POST /v1/cadence/monthly"""

    items: List[RecurringAmountSchema] = Field(..., min_length=1)


class CadenceResponse(BaseModel):
    monthly_amounts: List[float]
    monthly_total: float


# ---------------------------------------------------------------------------
# Debts
# ---------------------------------------------------------------------------


class CardProjectionRequest(BaseModel):
    """Request body for POST /v1/debts/cards/projection"""

    cards: List[CardSchema]
    today: Optional[date] = None
    strategy: Literal["avalanche", "snowball"] = "avalanche"


class CardProjectionResponse(BaseModel):
    projections: List[DebtCycleProjection]
    portfolio: DebtPortfolioSummary
    payoff_ranking: List[PayoffCandidate]
    payoff_target: Optional[PayoffCandidate] = None
    payoff_backup: Optional[PayoffCandidate] = None
    alerts: List[RiskAlert]


class LoanProjectionRequest(BaseModel):
    """Request body for POST /v1/debts/loans/projection"""

    loans: List[LoanSchema]
    payment_events: List[LoanPaymentEventSchema] = Field(default_factory=list)
    today: Optional[date] = None
    max_months: Optional[int] = Field(None, ge=36, le=360)


class LoanStrategyRequest(BaseModel):
    loans: List[LoanSchema]
    payment_events: List[LoanPaymentEventSchema] = Field(default_factory=list)
    monthly_overpay_budget: float = Field(..., ge=0)
    today: Optional[date] = None


class LoanStrategyResponse(BaseModel):
    monthly_overpay_budget: float
    portfolio_annual_interest_baseline: float
    portfolio_annual_interest_with_avalanche: float
    portfolio_annual_interest_with_snowball: float
    recommended_mode: str
    recommended_target: Optional[LoanStrategyCandidate] = None
    avalanche_target: Optional[LoanStrategyCandidate] = None
    snowball_target: Optional[LoanStrategyCandidate] = None


class LoanWhatIfRequest(BaseModel):
    loans: List[LoanSchema]
    payment_events: List[LoanPaymentEventSchema] = Field(default_factory=list)
    loan_id: str = Field("all", description="Loan to adjust, or 'all'")
    extra_payment_delta: float = 0.0
    apr_delta: float = 0.0
    subscription_delta: float = 0.0
    due_day_shift: int = Field(0, ge=-30, le=30)
    today: Optional[date] = None


class LoanRefinanceRequest(BaseModel):
    """Request body for POST /v1/debts/loans/refinance"""

    loan: LoanSchema
    offer_apr: float = Field(..., ge=0)
    offer_fees: float = Field(0.0, ge=0)
    offer_term_months: int = Field(..., ge=1, le=360)
    today: Optional[date] = None


class LoanRefinanceResponse(BaseModel):
    loan_id: str
    current_outstanding: float
    result: RefinanceResult


class LoanPortfolioResponse(BaseModel):
    portfolio: LoanPortfolioProjection


class LoanWhatIfResponse(BaseModel):
    result: LoanWhatIfResult


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class TransferRequest(BaseModel):
    source_account_id: str
    destination_account_id: str
    amount: float


class TransferResponse(BaseModel):
    source_account_id: str
    destination_account_id: str
    amount: float


# ---------------------------------------------------------------------------
# Purchases
# ---------------------------------------------------------------------------


class ResolutionStateSchema(BaseModel):
    """Resolved duplicate pairs carried between calls"""

    resolved_pairs: List[List[str]] = Field(default_factory=list)
    intentional_pairs: List[List[str]] = Field(default_factory=list)
    archived: Dict[str, str] = Field(default_factory=dict, description="archived purchase id -> primary id")


class DuplicateScanRequest(BaseModel):
    """Request body for POST /v1/purchases/duplicates"""

    purchases: List[PurchaseSchema]
    resolutions: ResolutionStateSchema = Field(default_factory=ResolutionStateSchema)


class DuplicateScanResponse(BaseModel):
    matches: List[PurchaseDuplicateMatch]
    duplicate_count: int
    overlap_count: int


class DuplicateResolveRequest(BaseModel):
    purchases: List[PurchaseSchema]
    resolutions: ResolutionStateSchema = Field(default_factory=ResolutionStateSchema)
    primary_id: str
    secondary_id: str
    action: ResolutionAction


class DuplicateResolveResponse(BaseModel):
    applied: bool
    purchases: List[Purchase]
    resolutions: ResolutionStateSchema


class SplitLineSchema(BaseModel):
    category: str
    amount: float
    goal_id: Optional[str] = None
    account_id: Optional[str] = None

    def to_domain(self) -> SplitLine:
        return SplitLine(**self.model_dump())


class SplitTemplateLineSchema(BaseModel):
    category: str
    percentage: float
    goal_id: Optional[str] = None
    account_id: Optional[str] = None

    def to_domain(self) -> SplitTemplateLine:
        return SplitTemplateLine(**self.model_dump())


class SplitValidationRequest(BaseModel):
    """Either explicit split lines or percentage template lines"""

    purchase_amount: float = Field(..., gt=0)
    splits: List[SplitLineSchema] = Field(default_factory=list)
    template_lines: List[SplitTemplateLineSchema] = Field(default_factory=list)


class SplitValidationResponse(BaseModel):
    splits: List[SplitLine]
    total: float


class RecurringRequest(BaseModel):
    purchases: List[PurchaseSchema]


class RecurringResponse(BaseModel):
    candidates: List[RecurringCandidate]


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


class GoalForecastRequest(BaseModel):
    """Request body for POST /v1/goals/forecast"""

    goals: List[GoalSchema]
    today: Optional[date] = None


class GoalForecastItem(BaseModel):
    goal_id: str
    title: str
    status: str
    progress_percent: float
    remaining: float
    days_left: int
    planned_monthly_contribution: float
    required_monthly_contribution: float
    expected_progress_percent_now: float
    pace_coverage_ratio: float
    behind_percent: float
    contribution_consistency_score: int
    goal_health_score: int
    predicted_months_to_complete: Optional[float] = None
    predicted_completion_date: Optional[date] = None
    predicted_days_delta_to_target: Optional[int] = None
    at_risk_reasons: List[str]
    milestones: List[GoalMilestone]


class GoalForecastResponse(BaseModel):
    goals: List[GoalForecastItem]
    portfolio: GoalPortfolioSummary
    priorities: List[GoalPriorityRecommendation]


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


class PlanTripleSchema(BaseModel):
    expected_income: float = Field(..., ge=0)
    fixed_commitments: float = Field(..., ge=0)
    variable_spending_cap: float = Field(..., ge=0)


class WhatIfSchema(BaseModel):
    """Raw what-if values; clamped before use"""

    income_drop_percent: float = 0.0
    bill_increase_percent: float = 0.0
    extra_debt_payment: float = 0.0
    one_off_expense: float = 0.0
    smoothing_enabled: bool = False
    smoothing_months: float = 6


class BudgetRowSchema(BaseModel):
    category: str
    effective_target: float
    projected_month_end: float


class AllocationRuleSchema(BaseModel):
    target: Literal["bills", "savings", "goals", "debt_overpay"]
    percentage: float
    active: bool = True

    def to_domain(self) -> AllocationRule:
        return AllocationRule(**self.model_dump())


class PlanningRequest(BaseModel):
    """Request body for POST /v1/planning/simulate"""

    baseline: PlanTripleSchema
    month_key: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    version: Literal["base", "conservative", "aggressive"] = "base"
    overrides: Optional[PlanTripleSchema] = Field(None, description="Manual edits to the selected version")
    what_if: WhatIfSchema = Field(default_factory=WhatIfSchema)
    liquid_reserves: float = 0.0
    monthly_bills: float = Field(0.0, ge=0)
    budget_rows: List[BudgetRowSchema] = Field(default_factory=list)
    allocation_rules: List[AllocationRuleSchema] = Field(default_factory=list)


class PlanVersionSchema(BaseModel):
    version: str
    label: str
    description: str
    expected_income: float
    fixed_commitments: float
    variable_spending_cap: float
    monthly_net: float
    selected: bool


class WorkspaceSchema(BaseModel):
    month_key: str
    selected_version: str
    baseline_expected_income: float
    baseline_fixed_commitments: float
    baseline_variable_spending_cap: float
    baseline_monthly_net: float
    planned_expected_income: float
    planned_fixed_commitments: float
    planned_variable_spending_cap: float
    planned_monthly_net: float
    delta_expected_income: float
    delta_fixed_commitments: float
    delta_variable_spending_cap: float
    delta_monthly_net: float


class ScenarioSchema(BaseModel):
    income: float
    fixed_commitments: float
    variable_spending: float
    monthly_net: float
    monthly_outflow: float
    delta_monthly_net: float
    smoothing_adjustment: float
    irregular_categories: List[str]
    irregular_overshoot: float


class AllocationPlanSchema(BaseModel):
    buckets: List[AllocationBucket]
    total_percentage: float
    allocated_amount: float
    residual_amount: float
    unallocated_percentage: float
    over_allocated_percentage: float


class PlanningResponse(BaseModel):
    versions: List[PlanVersionSchema]
    workspace: WorkspaceSchema
    allocation: AllocationPlanSchema
    scenario: ScenarioSchema
    windows: List[ForecastWindow]
    suggestions: List[ReallocationSuggestion]


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class SummaryRequest(BaseModel):
    """Request body for POST /v1/summary"""

    records: FinanceRecordsSchema
    today: Optional[date] = None


class SummarySchema(BaseModel):
    """Dashboard summary figures; also accepted back for integrity checking"""

    month_key: str
    monthly_income: float
    monthly_bills: float
    monthly_card_spend: float
    card_limit_total: float
    card_used_total: float
    card_utilization_percent: float
    monthly_loan_base_payments: float
    monthly_loan_subscription_costs: float
    monthly_loan_payments: float
    total_loan_balance: float
    purchases_this_month: float
    pending_purchase_amount_this_month: float
    posted_purchase_amount_this_month: float
    reconciled_purchase_amount_this_month: float
    pending_purchases: int
    posted_purchases: int
    reconciled_purchases: int
    total_assets: float
    total_liabilities: float
    liquid_reserves: float
    net_worth: float
    goals_funded_percent: float
    monthly_commitments: float
    projected_monthly_net: float
    runway_available_pool: float
    runway_monthly_pressure: float
    runway_months: float


class SummaryResponse(BaseModel):
    summary: SummarySchema
    forecast_windows: List[ForecastWindow]
    plan_baseline: PlanTripleSchema = Field(..., description="Starting point for /v1/planning/simulate")


class IntegrityRequest(BaseModel):
    """Request body for POST /v1/summary/integrity; summary is rebuilt when omitted"""

    records: FinanceRecordsSchema
    summary: Optional[SummarySchema] = None
    today: Optional[date] = None


class IntegrityResponse(BaseModel):
    checks: List[IntegrityCheck]
    pass_count: int
    warning_count: int
    fail_count: int
