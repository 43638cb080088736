"""
Coach Router

E.N.C.L.O.S.E. diagnostic for a described dive issue, optionally scored
against one of the member's logged dives.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.dependencies import get_dive_log_reader
from app.services.coaching.enclose import diagnose
from app.services.dive_logs import DiveLogReader

router = APIRouter()


# Schemas
class EncloseRequest(BaseModel):
    description: str | None = None
    diveLogId: str | None = None


class EncloseMatchResponse(BaseModel):
    category: str
    name: str
    confidence: float
    questions: list[str]
    recommendations: list[str]


class EncloseResponse(BaseModel):
    primaryCategory: str
    primaryIssue: str
    confidence: float
    allMatches: list[EncloseMatchResponse]
    clearDiveScore: int | None
    nextSteps: list[str]
    diagnosticQuestions: list[str]
    recommendations: list[str]
    kovalQuote: str
    diveLogUsed: bool


DiveLogs = Annotated[DiveLogReader, Depends(get_dive_log_reader)]


@router.post("/enclose-diagnose", response_model=EncloseResponse)
async def enclose_diagnose(request: EncloseRequest, dive_logs: DiveLogs):
    if not request.description or not request.description.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Issue description is required",
        )

    dive = await dive_logs.get(request.diveLogId) if request.diveLogId else None
    result = diagnose(request.description, dive)

    return EncloseResponse(
        primaryCategory=result.primary_category,
        primaryIssue=result.primary_issue,
        confidence=result.confidence,
        allMatches=[EncloseMatchResponse(**m.model_dump()) for m in result.all_matches],
        clearDiveScore=result.clear_dive_score,
        nextSteps=result.next_steps,
        diagnosticQuestions=result.diagnostic_questions,
        recommendations=result.recommendations,
        kovalQuote=result.koval_quote,
        diveLogUsed=dive is not None,
    )
