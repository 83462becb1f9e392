"""
Post scorer: a pure function of a RankablePost and the current time.

  score = (engagement + authority) * freshness * maturity * content_quality

  engagement       likes·w_like + replies·w_reply + reposts·w_repost + saves·w_save
  authority        min(cap, w_authority · log10(1 + followers))
  freshness        0.5 ^ (post_age_hours / half_life_hours)
  maturity         ramps linearly from new_account_min_multiplier to 1.0 over
                   the first new_account_days of the author's account
  content_quality  1.0, dampened for very short posts and for posts made
                   mostly of #hashtags / @mentions

Missing, negative or non-finite inputs count as zero; a missing timestamp
counts as "now". Clock skew is tolerated by clamping ages at zero. Sums and
products saturate at the largest finite float, so more engagement never
lowers a score.
"""
import math
import sys
from datetime import datetime, timezone
from typing import Optional

from feed_api.config import ScoringWeights, settings
from feed_api.ranking.models import RankablePost, ScoreBreakdown

_FLOAT_MAX = sys.float_info.max
_TAG_PREFIXES = ("#", "@")


def _saturate(value: float) -> float:
    return min(value, _FLOAT_MAX)


def _non_negative(value) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except OverflowError:
        # int too large for a float
        return _FLOAT_MAX if value > 0 else 0.0
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _as_utc(ts: Optional[datetime], default: datetime) -> datetime:
    if ts is None:
        return default
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _hours_between(later: datetime, earlier: datetime) -> float:
    return max(0.0, (later - earlier).total_seconds() / 3600.0)


def engagement_signal(post: RankablePost, weights: ScoringWeights) -> float:
    m = post.metrics
    terms = (
        _saturate(_non_negative(m.likes) * weights.like_weight),
        _saturate(_non_negative(m.replies) * weights.reply_weight),
        _saturate(_non_negative(m.reposts) * weights.repost_weight),
        _saturate(_non_negative(m.saves) * weights.save_weight),
    )
    return _saturate(sum(terms))


def authority_signal(follower_count, weights: ScoringWeights) -> float:
    followers = _non_negative(follower_count)
    return min(weights.authority_cap, weights.authority_weight * math.log10(1.0 + followers))


def freshness_decay(post_age_hours: float, weights: ScoringWeights) -> float:
    return math.pow(0.5, post_age_hours / weights.freshness_half_life_hours)


def maturity_dampener(account_age_days: float, weights: ScoringWeights) -> float:
    if weights.new_account_days <= 0 or account_age_days >= weights.new_account_days:
        return 1.0
    floor = weights.new_account_min_multiplier
    return floor + (1.0 - floor) * (account_age_days / weights.new_account_days)


def content_quality(content: Optional[str], weights: ScoringWeights) -> tuple[float, list[str]]:
    """
    Multiplier in [0, 1] from the post text, plus the notes explaining it.

    Empty content is not penalised: media-only posts are legitimate.
    """
    text = (content or "").strip()
    multiplier = 1.0
    notes: list[str] = []

    if 0 < len(text) < weights.min_content_length:
        multiplier *= weights.short_content_multiplier
        notes.append("short_content")

    tokens = text.split()
    if tokens:
        tagged = sum(1 for t in tokens if len(t) > 1 and t.startswith(_TAG_PREFIXES))
        if tagged / len(tokens) > weights.max_tag_density:
            multiplier *= weights.tag_heavy_multiplier
            notes.append("tag_heavy")

    return multiplier, notes


def score_breakdown(
    post: RankablePost,
    now: datetime,
    weights: Optional[ScoringWeights] = None,
) -> ScoreBreakdown:
    """Compute every scoring component for ``post`` as of ``now``."""
    weights = weights or settings.scoring
    now = _as_utc(now, datetime.now(timezone.utc))

    created_at = _as_utc(post.created_at, now)
    user_created_at = _as_utc(post.user_created_at, now)
    post_age_hours = _hours_between(now, created_at)
    account_age_days = _hours_between(now, user_created_at) / 24.0

    engagement = engagement_signal(post, weights)
    authority = authority_signal(post.follower_count, weights)
    freshness = freshness_decay(post_age_hours, weights)
    maturity = maturity_dampener(account_age_days, weights)
    quality, notes = content_quality(post.content, weights)

    score = _saturate(_saturate(engagement + authority) * freshness * maturity * quality)
    if math.isnan(score):
        score = 0.0

    return ScoreBreakdown(
        engagement=engagement,
        authority=authority,
        freshness=freshness,
        maturity=maturity,
        content_quality=quality,
        score=score,
        post_age_hours=post_age_hours,
        account_age_days=account_age_days,
        moderation_notes=notes,
    )


def score_post(
    post: RankablePost,
    now: datetime,
    weights: Optional[ScoringWeights] = None,
) -> float:
    return score_breakdown(post, now, weights).score
