"""Pydantic models for API request/response validation"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from care_tracker.models.track import Question, ResponseOption


class SaveResponseRequest(BaseModel):
    """Request to record an answer"""
    question_id: int = Field(..., description="Question being answered")
    answer: Any = Field(..., description="Scalar or list answer; stored JSON-encoded")
    user_id: str = Field(..., description="Acting user identifier")
    patient_id: int = Field(..., description="Patient identifier")


class AddOptionRequest(BaseModel):
    """Request to add a response option"""
    label: str = Field(..., description="Option text")


class OptionCreatedResponse(BaseModel):
    """Response with the new option ID"""
    option_id: int


class LinkItemRequest(BaseModel):
    """Request to subscribe a patient to an item"""
    user_id: str = Field(..., description="Acting user identifier")
    patient_id: int = Field(..., description="Patient identifier")
    date: str = Field(..., description="MM-DD-YYYY (or YYYY-MM-DD) date to link from")


class LinkItemResponse(BaseModel):
    """Response with the bucket entry of a linked item"""
    entry_id: Optional[int] = None


class UnlinkItemRequest(BaseModel):
    """Request to unsubscribe a patient from an item"""
    patient_id: int = Field(..., description="Patient identifier")


class UnlinkItemResponse(BaseModel):
    """Response with the number of deselected entries"""
    deselected: int


class SummariesResponse(BaseModel):
    """Rendered summaries of an entry"""
    entry_id: int
    summaries: List[str]


class VisibilityRequest(BaseModel):
    """Request to evaluate a question's visibility"""
    question: Question = Field(..., description="Question to evaluate")
    answers: Dict[int, Optional[str]] = Field(
        default_factory=dict,
        description="Raw JSON-encoded answers keyed by question id"
    )
    questions: List[Question] = Field(default_factory=list, description="Question set of the item")
    options: List[ResponseOption] = Field(default_factory=list, description="Response options of the item")


class VisibilityResponse(BaseModel):
    """Visibility result"""
    question_id: int
    visible: bool


class CustomGoalCreatedResponse(BaseModel):
    """Response with the new custom goal ID"""
    item_id: int


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str
    database: str
    timestamp: datetime
