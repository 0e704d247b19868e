"""Business-invariant checks for user-initiated actions"""

from dataclasses import dataclass
from typing import List, Sequence

from finance_engine.domain.exceptions import (
    AllocationLimitError,
    InvalidFundingSourceError,
    InvalidTransferError,
)
from finance_engine.domain.models import FundingSource
from finance_engine.utils.money import finite_or_zero, round_currency

ALLOCATION_TARGETS = ("bills", "savings", "goals", "debt_overpay")
PERCENT_EPSILON = 0.000001


@dataclass(frozen=True)
class AllocationRule:
    target: str  # bills | savings | goals | debt_overpay
    percentage: float
    active: bool = True


def validate_account_transfer(source_account_id: str, destination_account_id: str, amount: float) -> float:
    """Transfers need two distinct accounts and a positive amount; returns the rounded amount"""
    if not source_account_id:
        raise InvalidTransferError("Select a source account.")
    if not destination_account_id:
        raise InvalidTransferError("Select a destination account.")
    if source_account_id == destination_account_id:
        raise InvalidTransferError("Source and destination must be different accounts.")
    if finite_or_zero(amount) <= 0:
        raise InvalidTransferError("Transfer amount must be greater than 0.")
    return round_currency(amount)


def validate_allocation_rules(rules: Sequence[AllocationRule]) -> List[AllocationRule]:
    """
    Income allocation rules: one per target, each 0-100%, active total <= 100%.
    """
    seen = set()
    active_total = 0.0
    for rule in rules:
        if rule.target not in ALLOCATION_TARGETS:
            raise AllocationLimitError(f"Unknown allocation target: {rule.target}.")
        if rule.target in seen:
            raise AllocationLimitError("Allocation rule already exists for this target.")
        seen.add(rule.target)

        percentage = finite_or_zero(rule.percentage)
        if percentage < 0 or percentage > 100:
            raise AllocationLimitError("Allocation percentage must be between 0 and 100.")
        if rule.active:
            active_total += percentage

    if active_total > 100 + PERCENT_EPSILON:
        raise AllocationLimitError("Allocation percentages cannot exceed 100% in total.")
    return list(rules)


def validate_goal_funding_sources(sources: Sequence[FundingSource]) -> List[FundingSource]:
    """
    Drop blank rows, trim ids, and reject duplicated or over-allocated sources.
    """
    seen = set()
    total = 0.0
    cleaned: List[FundingSource] = []

    for source in sources:
        source_id = (source.source_id or "").strip()
        if not source_id:
            continue
        dedupe_key = (source.source_type, source_id)
        if dedupe_key in seen:
            raise InvalidFundingSourceError("Duplicate goal funding source rows are not allowed.")
        seen.add(dedupe_key)

        percent = source.allocation_percent
        if percent is not None:
            percent = finite_or_zero(percent)
            if percent < 0:
                raise InvalidFundingSourceError("Funding allocation % cannot be negative.")
            if percent > 100:
                raise InvalidFundingSourceError("Funding allocation % must be 100 or less.")
            total += percent

        cleaned.append(FundingSource(source_type=source.source_type, source_id=source_id, allocation_percent=percent))

    if total > 100 + PERCENT_EPSILON:
        raise InvalidFundingSourceError("Funding allocation total cannot exceed 100%.")
    return cleaned
