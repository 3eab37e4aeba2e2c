from typing import List
from fastapi import APIRouter, Depends, HTTPException
import logging
from mockly.core.dependencies import get_current_user, get_interview_repository
from mockly.models.interview import CompletedInterview, CompletedInterviewCreate, SaveInterviewResponse
from mockly.services.interview_repository import InterviewRepository

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("", response_model=SaveInterviewResponse, response_model_by_alias=True)
async def save_interview(
    data: CompletedInterviewCreate,
    current_user: dict = Depends(get_current_user),
    repository: InterviewRepository = Depends(get_interview_repository),
):
    return repository.save(current_user["id"], data)

@router.get("", response_model=List[CompletedInterview], response_model_by_alias=True)
async def list_interviews(
    current_user: dict = Depends(get_current_user),
    repository: InterviewRepository = Depends(get_interview_repository),
):
    return repository.list_for_user(current_user["id"])

@router.get("/{interview_id}", response_model=CompletedInterview, response_model_by_alias=True)
async def get_interview(
    interview_id: str,
    current_user: dict = Depends(get_current_user),
    repository: InterviewRepository = Depends(get_interview_repository),
):
    interview = repository.get_by_id(interview_id, current_user["id"])
    if interview is None:
        raise HTTPException(status_code=404, detail="Interview not found")
    return interview
