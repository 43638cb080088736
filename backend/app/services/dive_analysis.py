"""
Dive Log Analysis

Coaching feedback on one stored dive, and pattern analysis across the dives
of a recent timeframe. Statistics are computed here; the LLM only writes the
coaching text, so a fallback reply still comes with usable numbers.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Sequence

from pydantic import BaseModel, Field

from app.models.dive_log import DiveLog
from app.services.dive_logs import DiveLogReader
from app.services.llm.client import ChatCompletionClient

logger = logging.getLogger(__name__)

# Average reached depth must move by more than this between the two halves
# of the timeframe to count as a trend
TREND_THRESHOLD_M = 2.0

ANALYST_SYSTEM_PROMPT = (
    "You are Daniel Koval, expert freediving coach. Analyze the member's dive data "
    "using the E.N.C.L.O.S.E. framework. Never recommend progression while symptoms "
    "are present; progress in 2-3m increments only. Be specific and concise."
)


class InsufficientDataError(Exception):
    """Raised when there are too few dives in the timeframe to look for patterns."""

    def __init__(self, found: int, required: int):
        super().__init__(f"Need at least {required} dives for meaningful pattern analysis (found {found})")
        self.found = found
        self.required = required


class DiveAnalysis(BaseModel):
    dive_log_id: str
    user_id: str
    summary: str
    coaching_report: str
    failed: bool = False


class PatternStats(BaseModel):
    total_dives: int
    first_date: date | None = None
    last_date: date | None = None
    disciplines: list[str] = Field(default_factory=list)
    average_reached_depth: float | None = None
    max_reached_depth: float | None = None
    depth_trend: str = "unknown"  # improving / declining / stable / unknown
    target_hit_rate: float | None = None
    squeeze_count: int = 0
    blackout_count: int = 0
    issue_count: int = 0
    risk_level: str = "LOW"


class PatternAnalysis(BaseModel):
    user_id: str
    timeframe_days: int
    stats: PatternStats
    insights: str
    failed: bool = False


def format_dive_for_analysis(log: DiveLog) -> str:
    """One 'Label: value' line per recorded field."""
    fields = [
        ("Date", log.dive_date.isoformat() if log.dive_date else None),
        ("Discipline", log.discipline),
        ("Location", log.location),
        ("Target Depth", f"{log.target_depth:g}m" if log.target_depth is not None else None),
        ("Reached Depth", f"{log.reached_depth:g}m" if log.reached_depth is not None else None),
        ("Dive Time", log.total_dive_time),
        ("Mouthfill Depth", f"{log.mouthfill_depth:g}m" if log.mouthfill_depth is not None else None),
        ("Issue Depth", f"{log.issue_depth:g}m" if log.issue_depth is not None else None),
        ("Issue", log.issue_comment),
        ("Squeeze", "yes" if log.squeeze else None),
        ("Blackout", "yes" if log.blackout else None),
        ("Notes", log.notes),
    ]
    return "\n".join(f"{label}: {value}" for label, value in fields if value)


def _depth_trend(depths: list[float]) -> str:
    if len(depths) < 2:
        return "unknown"
    half = len(depths) // 2
    earlier = sum(depths[:half]) / half
    later = sum(depths[half:]) / (len(depths) - half)
    if later - earlier > TREND_THRESHOLD_M:
        return "improving"
    if earlier - later > TREND_THRESHOLD_M:
        return "declining"
    return "stable"


def assess_risk(stats: PatternStats) -> str:
    if stats.blackout_count:
        return "HIGH"
    if stats.squeeze_count or (stats.total_dives and stats.issue_count * 3 >= stats.total_dives):
        return "MODERATE"
    return "LOW"


def compute_pattern_stats(logs: Sequence[DiveLog]) -> PatternStats:
    """Statistics over dives ordered oldest first."""
    depths = [log.reached_depth for log in logs if log.reached_depth is not None]
    with_target = [
        log for log in logs if log.target_depth is not None and log.reached_depth is not None
    ]
    dates = [log.dive_date for log in logs if log.dive_date is not None]

    stats = PatternStats(
        total_dives=len(logs),
        first_date=min(dates) if dates else None,
        last_date=max(dates) if dates else None,
        disciplines=sorted({log.discipline for log in logs if log.discipline}),
        average_reached_depth=round(sum(depths) / len(depths), 1) if depths else None,
        max_reached_depth=max(depths) if depths else None,
        depth_trend=_depth_trend(depths),
        target_hit_rate=(
            round(sum(1 for log in with_target if log.reached_depth >= log.target_depth) / len(with_target), 2)
            if with_target
            else None
        ),
        squeeze_count=sum(1 for log in logs if log.squeeze),
        blackout_count=sum(1 for log in logs if log.blackout),
        issue_count=sum(1 for log in logs if log.issue_comment or log.issue_depth is not None),
    )
    stats.risk_level = assess_risk(stats)
    return stats


def compile_pattern_prompt(stats: PatternStats, logs: Sequence[DiveLog], timeframe_days: int) -> str:
    dives = "\n\n".join(format_dive_for_analysis(log) for log in logs)
    return f"""Analyze these freediving patterns from the last {timeframe_days} days.

DIVE DATA SUMMARY:
- Total dives: {stats.total_dives}
- Date range: {stats.first_date} to {stats.last_date}
- Disciplines: {', '.join(stats.disciplines) or 'Unknown'}
- Average reached depth: {stats.average_reached_depth}m, deepest: {stats.max_reached_depth}m
- Depth trend: {stats.depth_trend}
- Target hit rate: {stats.target_hit_rate}
- Squeezes: {stats.squeeze_count}, blackouts: {stats.blackout_count}, dives with issues: {stats.issue_count}
- Computed risk level: {stats.risk_level}

DIVES (oldest first):
{dives}

Give an overall assessment, the key patterns, a risk assessment, specific
recommendations and goals for the next training phase."""


class DiveAnalyzer:
    def __init__(
        self,
        llm: ChatCompletionClient,
        dive_logs: DiveLogReader,
        min_dives: int = 3,
    ):
        self.llm = llm
        self.dive_logs = dive_logs
        self.min_dives = min_dives

    async def analyze_dive(self, dive_log_id: str) -> DiveAnalysis | None:
        """Coaching report for one stored dive, or None if the log doesn't exist."""
        log = await self.dive_logs.get(dive_log_id)
        if log is None:
            return None

        summary = format_dive_for_analysis(log)
        reply = await self.llm.complete(
            [
                {"role": "system", "content": ANALYST_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": "Analyze this dive and give a short coaching report:\n\n" + summary,
                },
            ]
        )
        logger.info("[Analysis] Dive %s analyzed (failed=%s)", dive_log_id, reply.failed)
        return DiveAnalysis(
            dive_log_id=str(log.id),
            user_id=str(log.user_id),
            summary=summary,
            coaching_report=reply.content,
            failed=reply.failed,
        )

    async def analyze_patterns(
        self,
        user_id: str,
        timeframe_days: int = 30,
        today: date | None = None,
    ) -> PatternAnalysis:
        """
        Statistics and coaching insights over the user's dives in the timeframe.

        Raises:
            InsufficientDataError: Fewer than min_dives dives in the timeframe
        """
        today = today or datetime.now(timezone.utc).date()
        logs = await self.dive_logs.since(user_id, today - timedelta(days=timeframe_days))
        if len(logs) < self.min_dives:
            raise InsufficientDataError(len(logs), self.min_dives)

        stats = compute_pattern_stats(logs)
        reply = await self.llm.complete(
            [
                {"role": "system", "content": ANALYST_SYSTEM_PROMPT},
                {"role": "user", "content": compile_pattern_prompt(stats, logs, timeframe_days)},
            ]
        )
        logger.info(
            "[Analysis] %d dives for %s, trend=%s risk=%s",
            stats.total_dives,
            user_id,
            stats.depth_trend,
            stats.risk_level,
        )
        return PatternAnalysis(
            user_id=user_id,
            timeframe_days=timeframe_days,
            stats=stats,
            insights=reply.content,
            failed=reply.failed,
        )
