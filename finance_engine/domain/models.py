"""Domain models - immutable dataclasses for raw records and derived results"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple


class Cadence(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"
    ONE_TIME = "one_time"


class CustomUnit(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


class MinimumPaymentMode(str, Enum):
    FIXED = "fixed"
    PERCENT_PLUS_INTEREST = "percent_plus_interest"


class ReconciliationStatus(str, Enum):
    PENDING = "pending"
    POSTED = "posted"
    RECONCILED = "reconciled"


class DuplicateKind(str, Enum):
    DUPLICATE = "duplicate"
    OVERLAP = "overlap"


class ResolutionAction(str, Enum):
    MERGE = "merge"
    ARCHIVE_DUPLICATE = "archive_duplicate"
    MARK_INTENTIONAL = "mark_intentional"


# ---------------------------------------------------------------------------
# Raw records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecurringAmount:
    amount: float
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[int] = None
    custom_unit: Optional[CustomUnit] = None


@dataclass(frozen=True)
class DebtAccount:
    """
    Card or loan in the unified statement-cycle shape.

    Optional fields left as None are filled by the resolve_* functions in
    domain.cards, never by the caller.
    """

    account_id: str
    name: str
    kind: str = "card"  # "card" or "loan"
    credit_limit: Optional[float] = None
    current_balance: float = 0.0
    statement_balance: Optional[float] = None
    pending_amount: Optional[float] = None
    minimum_payment_mode: MinimumPaymentMode = MinimumPaymentMode.FIXED
    fixed_minimum: float = 0.0
    minimum_percent: float = 0.0
    extra_payment: float = 0.0
    planned_spend: float = 0.0
    apr: float = 0.0
    due_day: Optional[int] = None
    statement_day: Optional[int] = None


@dataclass(frozen=True)
class Loan:
    loan_id: str
    name: str
    balance: float = 0.0
    principal_balance: Optional[float] = None
    accrued_interest: Optional[float] = None
    apr: float = 0.0
    minimum_payment_mode: MinimumPaymentMode = MinimumPaymentMode.FIXED
    minimum_payment: float = 0.0
    minimum_percent: float = 0.0
    extra_payment: float = 0.0
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[int] = None
    custom_unit: Optional[CustomUnit] = None
    due_day: int = 1
    subscription_cost: float = 0.0
    subscription_payment_count: Optional[int] = None
    subscription_outstanding: Optional[float] = None


@dataclass(frozen=True)
class LoanPaymentEvent:
    loan_id: str
    amount: float
    occurred_on: date


@dataclass(frozen=True)
class Purchase:
    purchase_id: str
    item: str
    amount: float
    purchase_date: Optional[date]
    category: str = "uncategorized"
    ownership: str = "shared"
    reconciliation_status: ReconciliationStatus = ReconciliationStatus.POSTED
    notes: str = ""
    created_at: float = 0.0


@dataclass(frozen=True)
class FundingSource:
    source_type: str  # "account" | "card" | "income"
    source_id: str
    allocation_percent: Optional[float] = None


@dataclass(frozen=True)
class Goal:
    goal_id: str
    title: str
    target_amount: float
    current_amount: float
    target_date: Optional[date]
    created_at: date
    contribution_amount: float = 0.0
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[float] = None
    custom_unit: Optional[CustomUnit] = None
    paused: bool = False
    funding_sources: Tuple[FundingSource, ...] = ()
    priority: str = "medium"
    goal_type: str = "sinking_fund"


@dataclass(frozen=True)
class Income:
    income_id: str
    source: str
    amount: float
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[int] = None
    custom_unit: Optional[CustomUnit] = None
    gross_amount: Optional[float] = None
    tax_amount: Optional[float] = None
    national_insurance_amount: Optional[float] = None
    pension_amount: Optional[float] = None


@dataclass(frozen=True)
class Bill:
    bill_id: str
    name: str
    amount: float
    cadence: Cadence = Cadence.MONTHLY
    custom_interval: Optional[int] = None
    custom_unit: Optional[CustomUnit] = None


@dataclass(frozen=True)
class Card:
    """Credit card as stored; converted to a DebtAccount for projection"""

    card_id: str
    name: str
    credit_limit: float = 0.0
    used_limit: float = 0.0
    statement_balance: Optional[float] = None
    pending_charges: Optional[float] = None
    minimum_payment_mode: MinimumPaymentMode = MinimumPaymentMode.FIXED
    minimum_payment: float = 0.0
    minimum_percent: float = 0.0
    extra_payment: float = 0.0
    spend_per_month: float = 0.0
    apr: float = 0.0
    due_day: Optional[int] = None
    statement_day: Optional[int] = None


@dataclass(frozen=True)
class Account:
    account_id: str
    name: str
    account_type: str = "checking"  # "debt" accounts count as liabilities
    balance: float = 0.0
    liquid: bool = False


@dataclass(frozen=True)
class FinanceRecords:
    """Everything the summary builder and integrity checker read"""

    incomes: Tuple[Income, ...] = ()
    bills: Tuple[Bill, ...] = ()
    cards: Tuple[Card, ...] = ()
    loans: Tuple[Loan, ...] = ()
    purchases: Tuple[Purchase, ...] = ()
    accounts: Tuple[Account, ...] = ()
    goals: Tuple[Goal, ...] = ()


# ---------------------------------------------------------------------------
# Derived results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InterestForecast:
    next_month_interest: float
    total_interest: float
    cycles: int


@dataclass(frozen=True)
class DebtCycleProjection:
    account_id: str
    name: str
    kind: str
    credit_limit: float
    apr: float
    current_balance: float
    statement_balance: float
    pending_amount: float
    minimum_payment_mode: MinimumPaymentMode
    interest_amount: float
    new_statement_balance: float
    minimum_due: float
    extra_payment: float
    planned_payment: float
    post_payment_balance: float
    projected_utilization_after_payment: float
    due_day: int
    due_date: date
    due_applied: bool
    due_in_days: int
    display_current_balance: float
    display_available_credit: float
    display_utilization: float
    next_month_interest: float
    interest_12_months: float


@dataclass(frozen=True)
class DebtPortfolioSummary:
    account_count: int
    limit_total: float
    current_balance_total: float
    available_credit_total: float
    statement_balance_total: float
    new_statement_balance_total: float
    pending_total: float
    minimum_due_total: float
    planned_payment_total: float
    post_payment_balance_total: float
    next_month_interest_total: float
    interest_12_months_total: float
    utilization: float
    post_payment_utilization: float
    weighted_apr: float
    utilization_trend: str


@dataclass(frozen=True)
class PayoffCandidate:
    account_id: str
    name: str
    balance: float
    apr: float
    monthly_interest: float


@dataclass(frozen=True)
class RiskAlert:
    alert_id: str
    severity: str  # critical | warning | watch
    title: str
    detail: str


@dataclass(frozen=True)
class PurchaseDuplicateMatch:
    match_id: str
    kind: DuplicateKind
    primary_id: str
    secondary_id: str
    primary_item: str
    secondary_item: str
    name_similarity: float
    amount_delta: float
    amount_delta_percent: float
    date_delta_days: float
    reason: str


@dataclass(frozen=True)
class DuplicateResolutions:
    """
    Explicit record of resolved duplicate pairs.

    Pairs are unordered, keyed as frozenset({id_a, id_b}). archived holds
    (secondary_id, primary_id) for each archived duplicate.
    """

    resolved_pairs: FrozenSet[FrozenSet[str]] = frozenset()
    intentional_pairs: FrozenSet[FrozenSet[str]] = frozenset()
    archived: FrozenSet[Tuple[str, str]] = frozenset()

    @property
    def archived_ids(self) -> FrozenSet[str]:
        return frozenset(secondary for secondary, _ in self.archived)


@dataclass(frozen=True)
class RecurringCandidate:
    key: str
    label: str
    category: str
    count: int
    average_amount: float
    average_interval_days: float
    suggested_cadence: Cadence
    suggested_custom_interval: Optional[int]
    suggested_custom_unit: Optional[CustomUnit]
    last_purchase_date: date
    next_expected_date: date
    confidence: float


@dataclass(frozen=True)
class GoalMilestone:
    percent: int
    label: str
    target_date: Optional[date]
    achieved: bool


@dataclass(frozen=True)
class GoalMetrics:
    goal: Goal
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
    predicted_months_to_complete: Optional[float]
    predicted_completion_date: Optional[date]
    predicted_days_delta_to_target: Optional[int]
    at_risk_reasons: Tuple[str, ...]
    milestones: Tuple[GoalMilestone, ...]


@dataclass(frozen=True)
class PlanTriple:
    expected_income: float
    fixed_commitments: float
    variable_spending_cap: float

    @property
    def monthly_net(self) -> float:
        return self.expected_income - self.fixed_commitments - self.variable_spending_cap


@dataclass(frozen=True)
class PlanVersion:
    version: str  # base | conservative | aggressive
    month_key: str
    plan: PlanTriple
    selected: bool = False


@dataclass(frozen=True)
class ForecastWindow:
    days: int
    projected_net: float
    projected_cash: float
    coverage_months: float
    risk: str  # healthy | warning | critical
    baseline_projected_cash: float = 0.0
    delta_projected_cash: float = 0.0


@dataclass(frozen=True)
class ReallocationSuggestion:
    suggestion_id: str
    title: str
    detail: str
    impact_amount: float
    severity: str  # good | warning | critical


@dataclass(frozen=True)
class IntegrityCheck:
    check_id: str
    label: str
    status: str  # pass | warning | fail
    actual: float
    expected: float
    delta: float
    detail: str


@dataclass(frozen=True)
class IntegrityReport:
    checks: List[IntegrityCheck]
    pass_count: int
    warning_count: int
    fail_count: int
