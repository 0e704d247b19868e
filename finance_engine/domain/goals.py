"""Goal forecast engine - pace, health scoring, completion prediction and priorities"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence

from finance_engine.domain.cadence import to_monthly_amount
from finance_engine.domain.models import Goal, GoalMetrics, GoalMilestone
from finance_engine.utils.money import clamp, finite_or_zero, round_currency, round_whole

AVERAGE_DAYS_PER_MONTH = 30.4375
MILESTONE_PERCENTS = (25, 50, 75, 100)

PRIORITY_WEIGHTS = {"high": 58, "medium": 34, "low": 16}
GOAL_TYPE_WEIGHTS = {"emergency_fund": 12, "sinking_fund": 8, "debt_payoff": 14, "big_purchase": 6}
STATUS_BONUS = {"at_risk": 22, "overdue": 32}


@dataclass(frozen=True)
class GoalPortfolioSummary:
    goal_count: int
    target_total: float
    funded_total: float
    remaining_total: float
    weighted_progress_percent: float
    completed_count: int
    overdue_count: int
    planned_monthly_total: float
    required_monthly_total: float
    active_count: int
    paused_count: int
    average_health_score: float
    critical_count: int
    warning_count: int
    healthy_count: int


@dataclass(frozen=True)
class GoalPacePrediction:
    monthly_pace: float
    predicted_months: Optional[float]
    predicted_completion_date: Optional[date]
    predicted_days_delta: Optional[int]


@dataclass(frozen=True)
class GoalPriorityRecommendation:
    goal_id: str
    title: str
    score: int
    status: str
    shortfall: float
    recommended_extra_monthly: float
    baseline_completion_date: Optional[date]
    boosted_completion_date: Optional[date]
    projected_days_saved: int
    days_left: int


def _progress_percent(goal: Goal) -> float:
    target = finite_or_zero(goal.target_amount)
    current = finite_or_zero(goal.current_amount)
    return min(current / max(target, 1) * 100, 100)


def _required_monthly(remaining: float, days_left: int) -> float:
    if remaining <= 0:
        return 0.0
    if days_left <= 0:
        return round_currency(remaining)
    months_left = max(days_left / AVERAGE_DAYS_PER_MONTH, 1 / AVERAGE_DAYS_PER_MONTH)
    return round_currency(remaining / months_left)


def _expected_progress(goal: Goal, days_left: int, progress: float) -> float:
    """Linear interpolation of where progress should be between creation and target"""
    if goal.target_date is None:
        return progress
    total_days = max((goal.target_date - goal.created_at).days, 0)
    if total_days <= 0:
        return progress
    elapsed = clamp(total_days - max(days_left, 0), 0, total_days)
    return clamp(elapsed / max(total_days, 1) * 100, 0, 100)


def _pace_ratio(planned: float, required: float, remaining: float) -> float:
    if required <= 0:
        if remaining <= 0 or planned > 0:
            return 1.0
        return 0.0
    return clamp(planned / required, 0, 10)


def _consistency_score(goal: Goal, behind: float, planned: float, remaining: float, ratio: float) -> int:
    penalty = behind * 1.15
    if planned <= 0 and remaining > 0:
        penalty += 45
    if not goal.funding_sources and remaining > 0:
        penalty += 10
    if ratio < 1:
        penalty += (1 - ratio) * 28
    return int(clamp(round_whole(100 - penalty), 0, 100))


def _predicted_months(remaining: float, planned: float) -> Optional[float]:
    if remaining <= 0:
        return 0.0
    if planned > 0:
        return round_currency(remaining / planned)
    return None


def _completion_delta(months: Optional[float], days_left: int) -> Optional[int]:
    if months is None:
        return None
    return round_whole(months * AVERAGE_DAYS_PER_MONTH) - max(days_left, 0)


def _contribution_interval(goal: Goal) -> Optional[int]:
    """Custom contribution intervals count in whole units"""
    interval = finite_or_zero(goal.custom_interval)
    return round_whole(interval) if interval > 0 else None


def _build_milestones(goal: Goal, progress: float) -> tuple:
    milestones = []
    for percent in MILESTONE_PERCENTS:
        if goal.target_date is None:
            target_date = None
        else:
            span_days = max((goal.target_date - goal.created_at).days, 0)
            if span_days == 0:
                target_date = goal.target_date
            else:
                target_date = goal.created_at + timedelta(days=round_whole(span_days * percent / 100))
        milestones.append(
            GoalMilestone(percent=percent, label=f"{percent}%", target_date=target_date, achieved=progress >= percent)
        )
    return tuple(milestones)


def evaluate_goal(goal: Goal, today: date | None = None) -> GoalMetrics:
    """
    Derive pace, health and completion forecast for a single goal.

    Args:
        goal: Goal record
        today: Reference date (defaults to today)

    Returns:
        GoalMetrics with scores clamped to [0, 100]
    """
    if today is None:
        today = date.today()

    target = finite_or_zero(goal.target_amount)
    current = finite_or_zero(goal.current_amount)
    progress = _progress_percent(goal)
    remaining = max(target - current, 0)
    days_left = (goal.target_date - today).days if goal.target_date is not None else 0

    planned = round_currency(
        to_monthly_amount(goal.contribution_amount, goal.cadence, _contribution_interval(goal), goal.custom_unit)
    )
    required = _required_monthly(remaining, days_left)
    expected = _expected_progress(goal, days_left, progress)
    ratio = _pace_ratio(planned, required, remaining)
    behind = max(expected - progress, 0)
    consistency = _consistency_score(goal, behind, planned, remaining, ratio)

    months = _predicted_months(remaining, planned)
    delta = _completion_delta(months, days_left)
    if goal.target_date is not None and delta is not None:
        predicted_date = goal.target_date + timedelta(days=delta)
        predicted_delta = delta
    else:
        predicted_date = None
        predicted_delta = None

    reasons: List[str] = []
    if remaining > 0:
        if planned <= 0:
            reasons.append("No planned contribution set")
        if ratio < 1 and days_left <= 365:
            reasons.append(f"Pace shortfall ({round_whole(ratio * 100)}% of required)")
        if behind >= 10:
            reasons.append(f"Behind schedule by {round_whole(behind)}%")
        if consistency < 60:
            reasons.append(f"Low contribution consistency ({consistency}/100)")
    if predicted_delta is not None and predicted_delta > 0:
        reasons.append(f"Predicted {predicted_delta}d late at current pace")

    health = (
        min(ratio, 1) * 100 * 0.45
        + consistency * 0.35
        + (100 - min(behind, 100)) * 0.2
        - min(len(reasons) * 8, 32)
    )
    if predicted_delta is not None and predicted_delta > 0:
        health -= min(predicted_delta / 5, 22)
    if goal.paused:
        health -= 8

    return GoalMetrics(
        goal=goal,
        progress_percent=progress,
        remaining=round_currency(remaining),
        days_left=days_left,
        planned_monthly_contribution=planned,
        required_monthly_contribution=required,
        expected_progress_percent_now=expected,
        pace_coverage_ratio=ratio,
        behind_percent=behind,
        contribution_consistency_score=consistency,
        goal_health_score=int(clamp(round_whole(health), 0, 100)),
        predicted_months_to_complete=months,
        predicted_completion_date=predicted_date,
        predicted_days_delta_to_target=predicted_delta,
        at_risk_reasons=tuple(reasons),
        milestones=_build_milestones(goal, progress),
    )


def goal_status(metrics: GoalMetrics) -> str:
    """completed | overdue | at_risk | on_track"""
    if metrics.progress_percent >= 100:
        return "completed"
    if metrics.days_left < 0:
        return "overdue"
    required = metrics.required_monthly_contribution
    if required > 0 and metrics.planned_monthly_contribution + 0.009 < required and metrics.days_left <= 180:
        return "at_risk"
    if metrics.days_left <= 30 and metrics.progress_percent < 70:
        return "at_risk"
    return "on_track"


def summarize_goal_portfolio(metrics_list: Sequence[GoalMetrics]) -> GoalPortfolioSummary:
    target_total = sum(finite_or_zero(m.goal.target_amount) for m in metrics_list)
    funded_total = sum(finite_or_zero(m.goal.current_amount) for m in metrics_list)
    remaining_total = sum(m.remaining for m in metrics_list)
    weighted = sum(m.progress_percent * max(finite_or_zero(m.goal.target_amount), 0) for m in metrics_list)

    active = [m for m in metrics_list if not m.goal.paused and m.progress_percent < 100]
    health_scores = [m.goal_health_score for m in active]

    return GoalPortfolioSummary(
        goal_count=len(metrics_list),
        target_total=round_currency(target_total),
        funded_total=round_currency(funded_total),
        remaining_total=round_currency(remaining_total),
        weighted_progress_percent=weighted / target_total if target_total > 0 else 0.0,
        completed_count=sum(1 for m in metrics_list if m.progress_percent >= 100),
        overdue_count=sum(1 for m in metrics_list if m.days_left < 0 and m.progress_percent < 100),
        planned_monthly_total=round_currency(sum(m.planned_monthly_contribution for m in metrics_list)),
        required_monthly_total=round_currency(sum(m.required_monthly_contribution for m in metrics_list)),
        active_count=len(active),
        paused_count=sum(1 for m in metrics_list if m.goal.paused),
        average_health_score=round_currency(sum(health_scores) / len(health_scores)) if health_scores else 0.0,
        critical_count=sum(1 for score in health_scores if score < 55),
        warning_count=sum(1 for score in health_scores if 55 <= score < 80),
        healthy_count=sum(1 for score in health_scores if score >= 80),
    )


def predict_goal_with_extra_monthly(metrics: GoalMetrics, extra_monthly: float) -> GoalPacePrediction:
    """Re-run the completion forecast with extra money per month on top of the plan"""
    pace = metrics.planned_monthly_contribution + max(finite_or_zero(extra_monthly), 0)
    target_date = metrics.goal.target_date

    if metrics.remaining <= 0:
        return GoalPacePrediction(monthly_pace=pace, predicted_months=0.0, predicted_completion_date=target_date, predicted_days_delta=0)
    if pace <= 0:
        return GoalPacePrediction(monthly_pace=0.0, predicted_months=None, predicted_completion_date=None, predicted_days_delta=None)

    months = round_currency(metrics.remaining / pace)
    delta = _completion_delta(months, metrics.days_left)
    return GoalPacePrediction(
        monthly_pace=round_currency(pace),
        predicted_months=months,
        predicted_completion_date=target_date + timedelta(days=delta) if target_date is not None else None,
        predicted_days_delta=delta if target_date is not None else None,
    )


def _days_left_bonus(days_left: int) -> int:
    if days_left < 0:
        return 34
    if days_left <= 30:
        return 26
    if days_left <= 90:
        return 18
    if days_left <= 180:
        return 9
    return 0


def recommend_goal_priorities(metrics_list: Sequence[GoalMetrics]) -> List[GoalPriorityRecommendation]:
    """
    Rank open goals by where an extra monthly amount helps most.

    Score blends priority, goal type, deadline proximity, status, risk
    reasons and the pace gap. Each goal gets a recommended extra monthly
    amount (its shortfall, or a quarter of its plan with a floor of 25)
    and the days that extra would save.
    """
    recommendations: List[GoalPriorityRecommendation] = []

    for metrics in metrics_list:
        if metrics.progress_percent >= 100 or metrics.remaining <= 0:
            continue

        status = goal_status(metrics)
        planned = metrics.planned_monthly_contribution
        required = metrics.required_monthly_contribution
        shortfall = max(required - planned, 0)
        late_days = metrics.predicted_days_delta_to_target or 0

        score = (
            PRIORITY_WEIGHTS.get(metrics.goal.priority, PRIORITY_WEIGHTS["medium"])
            + GOAL_TYPE_WEIGHTS.get(metrics.goal.goal_type, 0)
            + _days_left_bonus(metrics.days_left)
            + STATUS_BONUS.get(status, 0)
            + min(len(metrics.at_risk_reasons) * 6, 24)
            + clamp((1 - min(metrics.pace_coverage_ratio, 1)) * 26, 0, 26)
            + clamp(max(late_days, 0) / 14, 0, 14)
        )
        if required > 0:
            score += clamp(shortfall / required * 20, 0, 20)

        if shortfall > 0:
            extra = round_currency(min(metrics.remaining, shortfall))
        else:
            extra = round_currency(min(metrics.remaining, max(planned * 0.25, 25)))

        boosted = predict_goal_with_extra_monthly(metrics, extra)
        baseline_delta = metrics.predicted_days_delta_to_target
        if baseline_delta is None or boosted.predicted_days_delta is None:
            days_saved = 0
        else:
            days_saved = max(baseline_delta - boosted.predicted_days_delta, 0)

        recommendations.append(
            GoalPriorityRecommendation(
                goal_id=metrics.goal.goal_id,
                title=metrics.goal.title,
                score=round_whole(score),
                status=status,
                shortfall=round_currency(shortfall),
                recommended_extra_monthly=extra,
                baseline_completion_date=metrics.predicted_completion_date,
                boosted_completion_date=boosted.predicted_completion_date,
                projected_days_saved=days_saved,
                days_left=metrics.days_left,
            )
        )

    recommendations.sort(key=lambda r: (-r.score, r.days_left))
    return recommendations
