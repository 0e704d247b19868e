"""Income auto-allocation plan built from percentage rules"""

from dataclasses import dataclass
from typing import List, Sequence

from finance_engine.domain.validation import ALLOCATION_TARGETS, AllocationRule
from finance_engine.utils.money import finite_or_zero, round_currency

TARGET_LABELS = {
    "bills": "Bills",
    "savings": "Savings",
    "goals": "Goals",
    "debt_overpay": "Debt Overpay",
}


@dataclass(frozen=True)
class AllocationBucket:
    target: str
    label: str
    percentage: float
    monthly_amount: float
    active: bool


@dataclass(frozen=True)
class AllocationPlan:
    buckets: List[AllocationBucket]
    total_percentage: float
    allocated_amount: float
    residual_amount: float
    unallocated_percentage: float
    over_allocated_percentage: float

    def bucket(self, target: str) -> AllocationBucket:
        return next(b for b in self.buckets if b.target == target)


def build_auto_allocation_plan(monthly_income: float, rules: Sequence[AllocationRule]) -> AllocationPlan:
    """
    Split monthly income across the four allocation buckets.

    Only active rules count. A total above 100% is reported through
    over_allocated_percentage rather than rejected; rule editing goes
    through validate_allocation_rules.
    """
    income = max(finite_or_zero(monthly_income), 0)
    buckets: List[AllocationBucket] = []

    for target in ALLOCATION_TARGETS:
        percentage = round_currency(
            sum(finite_or_zero(rule.percentage) for rule in rules if rule.active and rule.target == target)
        )
        buckets.append(
            AllocationBucket(
                target=target,
                label=TARGET_LABELS[target],
                percentage=percentage,
                monthly_amount=round_currency(income * percentage / 100),
                active=percentage > 0,
            )
        )

    total_percentage = round_currency(sum(b.percentage for b in buckets))
    allocated = round_currency(income * total_percentage / 100)
    return AllocationPlan(
        buckets=buckets,
        total_percentage=total_percentage,
        allocated_amount=allocated,
        residual_amount=round_currency(income - allocated),
        unallocated_percentage=round_currency(max(100 - total_percentage, 0)),
        over_allocated_percentage=round_currency(max(total_percentage - 100, 0)),
    )
