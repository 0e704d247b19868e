"""Duplicate/overlap detection and resolution for purchase records"""

import re
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import timedelta
from statistics import mean
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from finance_engine.domain.exceptions import PurchaseNotFoundError
from finance_engine.domain.models import (
    Cadence,
    CustomUnit,
    DuplicateKind,
    DuplicateResolutions,
    Purchase,
    PurchaseDuplicateMatch,
    RecurringCandidate,
    ReconciliationStatus,
    ResolutionAction,
)
from finance_engine.utils.money import clamp, finite_or_zero, round_currency, round_whole

# Merchant noise that shows up on statements but says nothing about who was paid
STOP_WORDS = frozenset(
    {
        "payment",
        "card",
        "purchase",
        "shop",
        "online",
        "store",
        "ltd",
        "limited",
        "co",
        "service",
        "services",
        "subscription",
        "charge",
        "debit",
        "credit",
    }
)

MIN_SIMILARITY = 0.58
CONTAINMENT_SIMILARITY = 0.94
DUPLICATE_RULE = (0.9, 0.03, 2)  # similarity >=, amount delta <=, day delta <=
OVERLAP_RULE = (0.7, 0.2, 7)

DUPLICATE_REASON = "Very similar merchant, amount, and purchase timing."
OVERLAP_REASON = "Likely overlap based on merchant similarity, amount, and purchase timing."
NOTES_SEPARATOR = " | "

MAX_RECURRING_CANDIDATES = 8

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ResolutionOutcome:
    purchases: Tuple[Purchase, ...]
    resolutions: DuplicateResolutions
    applied: bool


def pair_key(left_id: str, right_id: str) -> FrozenSet[str]:
    return frozenset((left_id, right_id))


def normalize_name(value: str) -> str:
    """Lowercase, replace punctuation with spaces, collapse whitespace"""
    lowered = _NON_ALNUM.sub(" ", (value or "").lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def _tokens(normalized: str) -> set:
    return {token for token in normalized.split(" ") if len(token) > 1 and token not in STOP_WORDS}


def name_similarity(left: str, right: str) -> float:
    """
    Similarity of two merchant names in [0, 1].

    1.0 when the normalized names match, 0.94 when one contains the other,
    otherwise Jaccard overlap of meaningful tokens.
    """
    a = normalize_name(left)
    b = normalize_name(right)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if a in b or b in a:
        return CONTAINMENT_SIMILARITY

    left_tokens = _tokens(a)
    right_tokens = _tokens(b)
    union = left_tokens | right_tokens
    if not union:
        return 0.0
    return len(left_tokens & right_tokens) / len(union)


def _day_delta(left: Purchase, right: Purchase) -> float:
    if left.purchase_date is None or right.purchase_date is None:
        return float("inf")
    return float(abs((left.purchase_date - right.purchase_date).days))


def _classify(similarity: float, amount_delta_percent: float, day_delta: float) -> Optional[DuplicateKind]:
    for kind, (min_similarity, max_amount_delta, max_days) in (
        (DuplicateKind.DUPLICATE, DUPLICATE_RULE),
        (DuplicateKind.OVERLAP, OVERLAP_RULE),
    ):
        if similarity >= min_similarity and amount_delta_percent <= max_amount_delta and day_delta <= max_days:
            return kind
    return None


def compare_purchases(left: Purchase, right: Purchase) -> Optional[PurchaseDuplicateMatch]:
    """
    Classify a single pair, or None when it is not a likely duplicate.

    Primary is the earlier-created record; ties keep `left` as primary.
    """
    if (left.ownership or "shared") != (right.ownership or "shared"):
        return None

    similarity = name_similarity(left.item, right.item)
    if similarity < MIN_SIMILARITY:
        return None

    left_amount = finite_or_zero(left.amount)
    right_amount = finite_or_zero(right.amount)
    amount_delta = abs(left_amount - right_amount)
    amount_delta_percent = amount_delta / max(left_amount, right_amount, 1)
    day_delta = _day_delta(left, right)

    kind = _classify(similarity, amount_delta_percent, day_delta)
    if kind is None:
        return None

    primary, secondary = (left, right) if left.created_at <= right.created_at else (right, left)
    return PurchaseDuplicateMatch(
        match_id=f"{primary.purchase_id}-{secondary.purchase_id}",
        kind=kind,
        primary_id=primary.purchase_id,
        secondary_id=secondary.purchase_id,
        primary_item=primary.item,
        secondary_item=secondary.item,
        name_similarity=similarity,
        amount_delta=round_currency(amount_delta),
        amount_delta_percent=amount_delta_percent,
        date_delta_days=day_delta,
        reason=DUPLICATE_REASON if kind is DuplicateKind.DUPLICATE else OVERLAP_REASON,
    )


def _is_excluded(left: Purchase, right: Purchase, resolutions: DuplicateResolutions) -> bool:
    if left.purchase_id in resolutions.archived_ids or right.purchase_id in resolutions.archived_ids:
        return True
    key = pair_key(left.purchase_id, right.purchase_id)
    return key in resolutions.intentional_pairs or key in resolutions.resolved_pairs


def find_duplicate_matches(
    purchases: Sequence[Purchase],
    resolutions: DuplicateResolutions | None = None,
) -> List[PurchaseDuplicateMatch]:
    """
    Scan every unordered purchase pair for duplicates and overlaps.

    Archived records and pairs already marked intentional or resolved are
    skipped. Results: duplicates before overlaps, then similarity desc,
    amount delta asc, day delta asc.
    """
    resolutions = resolutions or DuplicateResolutions()
    matches: List[PurchaseDuplicateMatch] = []

    for i, left in enumerate(purchases):
        for right in purchases[i + 1 :]:
            if _is_excluded(left, right, resolutions):
                continue
            match = compare_purchases(left, right)
            if match is not None:
                matches.append(match)

    kind_order = {DuplicateKind.DUPLICATE: 0, DuplicateKind.OVERLAP: 1}
    return sorted(
        matches,
        key=lambda m: (kind_order[m.kind], -m.name_similarity, m.amount_delta_percent, m.date_delta_days),
    )


def merge_notes(primary_notes: str, secondary_notes: str) -> str:
    """Join both notes' segments, dropping repeats while keeping first-seen order"""
    segments: List[str] = []
    for notes in (primary_notes, secondary_notes):
        for segment in (notes or "").split(NOTES_SEPARATOR):
            segment = segment.strip()
            if segment and segment not in segments:
                segments.append(segment)
    return NOTES_SEPARATOR.join(segments)


def resolve_duplicate(
    purchases: Sequence[Purchase],
    resolutions: DuplicateResolutions,
    primary_id: str,
    secondary_id: str,
    action: ResolutionAction | str,
) -> ResolutionOutcome:
    """
    Apply a user-chosen resolution to a purchase pair.

    - merge: fold the secondary's notes into the primary, drop the secondary
    - archive_duplicate: set the secondary to pending and archive it against the primary
    - mark_intentional: keep both and never flag the pair again

    Re-running a resolution on a pair that is already resolved returns the
    inputs unchanged with applied=False.
    """
    action = ResolutionAction(action)
    key = pair_key(primary_id, secondary_id)

    if key in resolutions.resolved_pairs or key in resolutions.intentional_pairs:
        return ResolutionOutcome(purchases=tuple(purchases), resolutions=resolutions, applied=False)

    by_id: Dict[str, Purchase] = {p.purchase_id: p for p in purchases}
    primary = by_id.get(primary_id)
    secondary = by_id.get(secondary_id)
    if primary is None or secondary is None or primary_id == secondary_id:
        raise PurchaseNotFoundError("Purchase pair no longer exists.")

    if action is ResolutionAction.MERGE:
        merged = replace(primary, notes=merge_notes(primary.notes, secondary.notes))
        updated = tuple(
            merged if p.purchase_id == primary_id else p for p in purchases if p.purchase_id != secondary_id
        )
        new_resolutions = replace(resolutions, resolved_pairs=resolutions.resolved_pairs | {key})
    elif action is ResolutionAction.ARCHIVE_DUPLICATE:
        archived = replace(secondary, reconciliation_status=ReconciliationStatus.PENDING)
        updated = tuple(archived if p.purchase_id == secondary_id else p for p in purchases)
        new_resolutions = replace(
            resolutions,
            resolved_pairs=resolutions.resolved_pairs | {key},
            archived=resolutions.archived | {(secondary_id, primary_id)},
        )
    else:
        updated = tuple(purchases)
        new_resolutions = replace(resolutions, intentional_pairs=resolutions.intentional_pairs | {key})

    return ResolutionOutcome(purchases=updated, resolutions=new_resolutions, applied=True)


# ---------------------------------------------------------------------------
# Recurring purchase detection
# ---------------------------------------------------------------------------


def resolve_recurring_cadence(average_interval_days: float) -> Tuple[Cadence, Optional[int], Optional[CustomUnit]]:
    """Map an average gap between purchases onto the closest supported cadence"""
    if average_interval_days <= 10:
        return Cadence.WEEKLY, None, None
    if average_interval_days <= 19:
        return Cadence.BIWEEKLY, None, None
    if 26 <= average_interval_days <= 30:
        return Cadence.CUSTOM, 4, CustomUnit.WEEKS
    if average_interval_days <= 45:
        return Cadence.MONTHLY, None, None
    if average_interval_days <= 120:
        return Cadence.QUARTERLY, None, None
    return Cadence.YEARLY, None, None


def detect_recurring_candidates(purchases: Sequence[Purchase]) -> List[RecurringCandidate]:
    """
    Find merchants bought from on a regular rhythm.

    Needs at least three dated purchases under one normalized name with an
    average gap of 5-45 days. Confidence drops with gap deviation and grows
    with occurrence count.
    """
    groups: Dict[str, List[Purchase]] = defaultdict(list)
    for purchase in purchases:
        key = normalize_name(purchase.item)
        if key and purchase.purchase_date is not None:
            groups[key].append(purchase)

    candidates: List[RecurringCandidate] = []
    for key, entries in groups.items():
        if len(entries) < 3:
            continue
        ordered = sorted(entries, key=lambda p: p.purchase_date)
        intervals = [
            (later.purchase_date - earlier.purchase_date).days
            for earlier, later in zip(ordered, ordered[1:])
        ]
        average_interval = mean(intervals)
        if not 5 <= average_interval <= 45:
            continue

        deviation = mean(abs(interval - average_interval) for interval in intervals)
        confidence = round_currency(clamp(1 - deviation / 20 + len(entries) * 0.04, 0.0, 1.0) * 100)
        cadence, custom_interval, custom_unit = resolve_recurring_cadence(average_interval)
        last = ordered[-1]
        candidates.append(
            RecurringCandidate(
                key=key,
                label=last.item,
                category=last.category,
                count=len(entries),
                average_amount=round_currency(mean(finite_or_zero(p.amount) for p in entries)),
                average_interval_days=round_currency(average_interval),
                suggested_cadence=cadence,
                suggested_custom_interval=custom_interval,
                suggested_custom_unit=custom_unit,
                last_purchase_date=last.purchase_date,
                next_expected_date=last.purchase_date + timedelta(days=round_whole(average_interval)),
                confidence=confidence,
            )
        )

    candidates.sort(key=lambda c: (-c.confidence, -c.count))
    return candidates[:MAX_RECURRING_CANDIDATES]
