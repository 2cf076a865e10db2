"""
Deterministic credit scoring of activity records.

Every factor is an integer on a 0-100 scale and all divisions floor. The
weighted sum uses basis points so the total weight is exactly 10000.
"""

from defi_credit_ledger.core.models import ActivityRecord, CreditScore, ScoreFactors, Tier

BLOCKS_PER_DAY = 43200
LIQUIDATION_SCORE = 10
HISTORY_FULL_DAYS = 365
RECENCY_WINDOW_DAYS = 90

WEIGHT_REPAY_RATE = 3500
WEIGHT_UTILIZATION = 3000
WEIGHT_CUSHION = 1500
WEIGHT_HISTORY = 1000
WEIGHT_RECENCY = 1000
TOTAL_WEIGHT = 10000

TIER_BANDS = ((85, Tier.A), (70, Tier.B), (50, Tier.C))


def tier_for(score: int) -> Tier:
    """Map a score to its tier band."""
    for floor, tier in TIER_BANDS:
        if score >= floor:
            return tier
    return Tier.D


def elapsed_days(current_height: int, since_height: int, blocks_per_day: int = BLOCKS_PER_DAY) -> int:
    """
    Whole days between two heights, floored at zero.

    Parameters
    ----------
    current_height : int
        Reference height
    since_height : int
        Earlier height; 0 means never active
    blocks_per_day : int
        Average blocks per day on the chain

    Returns
    -------
    int
        Elapsed days, 0 when ``since_height`` is unset or later than ``current_height``

    """
    if since_height <= 0:
        return 0
    return max(current_height - since_height, 0) // blocks_per_day


def repay_rate(borrowed: int, repaid: int) -> int:
    if borrowed == 0:
        return 100
    return min(100, repaid * 100 // borrowed)


def utilization(borrowed: int, supplied: int) -> int:
    return min(100, borrowed * 100 // (borrowed + supplied + 1))


def cushion(borrowed: int, supplied: int) -> int:
    """Collateral cushion: full marks at 2x supply over borrow, linear below."""
    if borrowed == 0:
        return 100
    ratio = supplied * 100 // borrowed
    if ratio >= 200:
        return 100
    return ratio // 2


def history(age_days: int) -> int:
    if age_days >= HISTORY_FULL_DAYS:
        return 100
    return age_days * 100 // HISTORY_FULL_DAYS


def recency(days_since_active: int) -> int:
    if days_since_active >= RECENCY_WINDOW_DAYS:
        return 0
    return 100 - days_since_active * 100 // RECENCY_WINDOW_DAYS


def compute_score(
    borrowed: int,
    supplied: int,
    repaid: int,
    first_activity_height: int,
    latest_processed_height: int,
    liquidation_count: int,
    current_height: int,
    blocks_per_day: int = BLOCKS_PER_DAY,
) -> CreditScore:
    """
    Score raw activity figures.

    Parameters
    ----------
    borrowed, supplied, repaid : int
        USD totals
    first_activity_height : int
        Height of first activity, 0 when never active
    latest_processed_height : int
        Height of the most recent folded observation
    liquidation_count : int
        Number of recorded liquidations
    current_height : int
        Reference height for history and recency
    blocks_per_day : int
        Average blocks per day on the chain

    Returns
    -------
    CreditScore
        Score in [0, 100] with its tier

    Examples
    --------
    >>> day = BLOCKS_PER_DAY
    >>> compute_score(1000, 3000, 1000, 1, 1 + 365 * day, 0, 1 + 365 * day).score
    92

    """
    if liquidation_count > 0:
        return CreditScore(score=LIQUIDATION_SCORE, tier=tier_for(LIQUIDATION_SCORE))

    factors = ScoreFactors(
        repay_rate=repay_rate(borrowed, repaid),
        utilization=utilization(borrowed, supplied),
        cushion=cushion(borrowed, supplied),
        history=history(elapsed_days(current_height, first_activity_height, blocks_per_day)),
        recency=recency(elapsed_days(current_height, latest_processed_height, blocks_per_day)),
    )

    weighted = (
        factors.repay_rate * WEIGHT_REPAY_RATE
        + (100 - factors.utilization) * WEIGHT_UTILIZATION
        + factors.cushion * WEIGHT_CUSHION
        + factors.history * WEIGHT_HISTORY
        + factors.recency * WEIGHT_RECENCY
    )
    score = min(100, weighted // TOTAL_WEIGHT)
    return CreditScore(score=score, tier=tier_for(score), factors=factors)


def score_record(record: ActivityRecord, current_height: int, blocks_per_day: int = BLOCKS_PER_DAY) -> CreditScore:
    """Score an activity record at a reference height."""
    return compute_score(
        borrowed=record.borrowed_total,
        supplied=record.supplied_total,
        repaid=record.repaid_total,
        first_activity_height=record.first_activity_height,
        latest_processed_height=record.latest_processed_height,
        liquidation_count=record.liquidation_count,
        current_height=current_height,
        blocks_per_day=blocks_per_day,
    )
