"""Purchase split validation and template-based split generation"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from finance_engine.domain.exceptions import InvalidSplitError
from finance_engine.utils.money import finite_or_zero, round_currency

SPLIT_TOLERANCE = 0.01


@dataclass(frozen=True)
class SplitLine:
    """One category slice of a purchase"""

    category: str
    amount: float
    goal_id: Optional[str] = None
    account_id: Optional[str] = None


@dataclass(frozen=True)
class SplitTemplateLine:
    category: str
    percentage: float
    goal_id: Optional[str] = None
    account_id: Optional[str] = None


def _require_category(category: str, label: str) -> None:
    if not (category or "").strip():
        raise InvalidSplitError(f"{label} is required.")


def validate_purchase_splits(purchase_amount: float, splits: Sequence[SplitLine]) -> List[SplitLine]:
    """
    Check a manual split before it replaces a purchase's existing splits.

    Requirements:
    - at least one line
    - every line has a category and a positive amount
    - lines sum to the purchase total within one cent

    Returns the lines with categories trimmed; raises InvalidSplitError
    without returning anything partial.
    """
    if not splits:
        raise InvalidSplitError("At least one split is required.")

    total = 0.0
    for split in splits:
        _require_category(split.category, "Split category")
        if finite_or_zero(split.amount) <= 0:
            raise InvalidSplitError("Split amount must be greater than 0.")
        total += split.amount

    if abs(round_currency(total) - round_currency(purchase_amount)) > SPLIT_TOLERANCE:
        raise InvalidSplitError("Split amounts must equal purchase total.")

    return [
        SplitLine(
            category=split.category.strip(),
            amount=round_currency(split.amount),
            goal_id=split.goal_id,
            account_id=split.account_id,
        )
        for split in splits
    ]


def build_template_split_amounts(purchase_amount: float, lines: Sequence[SplitTemplateLine]) -> List[SplitLine]:
    """
    Turn percentage template lines into money amounts for a purchase.

    Percentages are normalized by their own total, so a 2/1/1 template
    behaves like 50/25/25. Last line absorbs the rounding remainder so the
    amounts always sum to the purchase exactly.

    Example:
        100.00 split 1/1/1 -> [33.33, 33.33, 33.34]
    """
    if not lines:
        raise InvalidSplitError("At least one split line is required.")

    total_percent = 0.0
    for line in lines:
        _require_category(line.category, "Split category")
        if finite_or_zero(line.percentage) <= 0:
            raise InvalidSplitError("Split percentage must be greater than 0.")
        total_percent += line.percentage

    if total_percent <= 0:
        raise InvalidSplitError("Split percentage total must be greater than 0.")

    splits: List[SplitLine] = []
    allocated = 0.0
    for index, line in enumerate(lines):
        is_last = index == len(lines) - 1
        if is_last:
            amount = round_currency(purchase_amount - allocated)
        else:
            amount = round_currency(purchase_amount * (line.percentage / total_percent))
        amount = max(amount, 0.0)
        splits.append(
            SplitLine(
                category=line.category.strip(),
                amount=amount,
                goal_id=line.goal_id,
                account_id=line.account_id,
            )
        )
        allocated = round_currency(allocated + amount)

    return validate_purchase_splits(purchase_amount, splits)
