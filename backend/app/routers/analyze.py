"""
Analysis Router

Coaching feedback on a single stored dive log and pattern analysis across
the member's recent dives.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.dependencies import get_dive_analyzer
from app.services.dive_analysis import DiveAnalyzer, InsufficientDataError

router = APIRouter()

MAX_TIMEFRAME_DAYS = 365


# Schemas
class DiveLogAnalysisRequest(BaseModel):
    diveLogId: str | None = None


class DiveLogAnalysisResponse(BaseModel):
    success: bool = True
    diveLogId: str
    userId: str
    summary: str
    coachingReport: str
    outcome: str
    processedAt: str


class PatternRequest(BaseModel):
    userId: str | None = None
    timeframe: int = 30


class PatternStatsResponse(BaseModel):
    firstDate: str | None
    lastDate: str | None
    disciplines: list[str]
    averageReachedDepth: float | None
    maxReachedDepth: float | None
    depthTrend: str
    targetHitRate: float | None
    squeezeCount: int
    blackoutCount: int
    issueCount: int


class PatternAnalysisBody(BaseModel):
    userId: str
    timeframe: int
    totalDives: int
    stats: PatternStatsResponse
    riskAssessment: str
    insights: str
    outcome: str


class PatternMetadata(BaseModel):
    divesAnalyzed: int
    timeframe: str
    analysisDate: str


class PatternResponse(BaseModel):
    success: bool = True
    analysis: PatternAnalysisBody
    metadata: PatternMetadata


Analyzer = Annotated[DiveAnalyzer, Depends(get_dive_analyzer)]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("/dive-log", response_model=DiveLogAnalysisResponse)
async def analyze_dive_log(request: DiveLogAnalysisRequest, analyzer: Analyzer):
    """Analyze one stored dive log."""
    if not request.diveLogId:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="diveLogId is required",
        )

    result = await analyzer.analyze_dive(request.diveLogId)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Dive log not found",
        )

    return DiveLogAnalysisResponse(
        diveLogId=result.dive_log_id,
        userId=result.user_id,
        summary=result.summary,
        coachingReport=result.coaching_report,
        outcome="fallback" if result.failed else "generated",
        processedAt=_now(),
    )


@router.post("/patterns", response_model=PatternResponse)
async def analyze_patterns(request: PatternRequest, analyzer: Analyzer):
    """Pattern analysis over the member's dives in the last `timeframe` days."""
    if not request.userId:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID required",
        )
    if not 1 <= request.timeframe <= MAX_TIMEFRAME_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"timeframe must be between 1 and {MAX_TIMEFRAME_DAYS} days",
        )

    try:
        result = await analyzer.analyze_patterns(request.userId, request.timeframe)
    except InsufficientDataError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    stats = result.stats
    return PatternResponse(
        analysis=PatternAnalysisBody(
            userId=result.user_id,
            timeframe=result.timeframe_days,
            totalDives=stats.total_dives,
            stats=PatternStatsResponse(
                firstDate=stats.first_date.isoformat() if stats.first_date else None,
                lastDate=stats.last_date.isoformat() if stats.last_date else None,
                disciplines=stats.disciplines,
                averageReachedDepth=stats.average_reached_depth,
                maxReachedDepth=stats.max_reached_depth,
                depthTrend=stats.depth_trend,
                targetHitRate=stats.target_hit_rate,
                squeezeCount=stats.squeeze_count,
                blackoutCount=stats.blackout_count,
                issueCount=stats.issue_count,
            ),
            riskAssessment=stats.risk_level,
            insights=result.insights,
            outcome="fallback" if result.failed else "generated",
        ),
        metadata=PatternMetadata(
            divesAnalyzed=stats.total_dives,
            timeframe=f"{result.timeframe_days} days",
            analysisDate=_now(),
        ),
    )
