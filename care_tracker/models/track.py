"""Tracking models: template data, time-series facts and assembled views"""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class TrackingFrequency(str, Enum):
    """How often a tracked item opens a new bucket"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RecordStatus(str, Enum):
    """Soft-delete status of template rows"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class QuestionType(str, Enum):
    """Known question types (storage accepts others, e.g. text)"""
    BOOLEAN = "boolean"
    MCQ = "mcq"
    MSQ = "msq"
    NUMERIC = "numeric"
    TEXT = "text"


# Parent types whose answers are resolved from option text to option code
OPTION_QUESTION_TYPES = frozenset({QuestionType.BOOLEAN.value, QuestionType.MCQ.value, QuestionType.MSQ.value})


# Template data

class TrackCategory(BaseModel):
    """Group of trackable items"""
    id: int
    name: str
    status: RecordStatus = RecordStatus.ACTIVE
    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None


class TrackItem(BaseModel):
    """Trackable goal template (shared, or private for custom goals)"""
    id: int
    category_id: int
    code: str
    name: str
    frequency: TrackingFrequency = TrackingFrequency.DAILY
    status: RecordStatus = RecordStatus.ACTIVE
    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None


class Question(BaseModel):
    """Question of a tracked item, optionally conditional on a parent question"""
    id: int
    item_id: int
    code: str
    text: str
    type: str
    required: bool = False
    summary_template: Optional[str] = None
    status: RecordStatus = RecordStatus.ACTIVE
    instructions: Optional[str] = None
    subtype: Optional[str] = None
    units: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    precision: Optional[int] = None
    parent_question_id: Optional[int] = None
    display_condition: Optional[str] = None  # single-key JSON object
    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None


class ResponseOption(BaseModel):
    """Selectable choice of a boolean/mcq/msq question"""
    id: int
    question_id: int
    code: Optional[str] = None
    text: str
    status: RecordStatus = RecordStatus.ACTIVE
    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None


# Time-series facts

class TrackItemEntry(BaseModel):
    """Patient x item x bucket date, carrying selection state"""
    id: int
    track_item_id: int
    patient_id: int
    user_id: str
    date: str  # MM-DD-YYYY bucket date
    selected: int = 1
    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None


class TrackResponse(BaseModel):
    """Answer of a patient to one question of one entry"""
    id: int
    track_item_entry_id: int
    question_id: int
    user_id: str
    patient_id: int
    answer: Optional[str] = None  # JSON-encoded scalar or array
    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None


# Assembled views

class TrackItemWithProgress(BaseModel):
    """Item row of the dated view"""
    item: TrackItem
    entry_id: Optional[int] = None
    completed: int = 0
    total: int = 0
    summaries: list[str] = Field(default_factory=list)


class TrackCategoryWithItems(TrackCategory):
    """Category of the dated view with its visible items"""
    items: list[TrackItemWithProgress] = Field(default_factory=list)


class TrackItemSelectable(BaseModel):
    """Item with the patient's subscription flag"""
    item: TrackItem
    selected: bool


class TrackCategoryWithSelectableItems(BaseModel):
    """Category with every active item and its subscription flag"""
    category: TrackCategory
    items: list[TrackItemSelectable] = Field(default_factory=list)


class QuestionWithOptions(BaseModel):
    """Question with its options, the entry's answer and current visibility"""
    question: Question
    options: list[ResponseOption] = Field(default_factory=list)
    existing_response: Optional[TrackResponse] = None
    visible: bool = True


# Custom goals

class CustomGoalQuestion(BaseModel):
    """Question supplied when creating a custom goal"""
    text: str
    type: str
    required: bool = False
    options: Optional[list[str]] = None
    summary_template: Optional[str] = None

    @field_validator('text')
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Question text cannot be blank"""
        if not v or not v.strip():
            raise ValueError("Question text cannot be empty")
        return v.strip()


class CustomGoalParams(BaseModel):
    """Parameters of a new custom goal"""
    name: str
    user_id: str
    patient_id: int
    date: Optional[str] = None  # MM-DD-YYYY; links the goal from this date when set
    frequency: TrackingFrequency = TrackingFrequency.DAILY
    questions: list[CustomGoalQuestion] = Field(default_factory=list)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Goal name cannot be blank"""
        if not v or not v.strip():
            raise ValueError("Goal name cannot be empty")
        return v.strip()


class CustomGoalQuestionUpdate(BaseModel):
    """
    Question change of a custom goal.

    With an id, only the supplied fields are changed. Without an id a new
    question is inserted, so text and type are required.
    """
    id: Optional[int] = None
    text: Optional[str] = None
    type: Optional[str] = None
    required: Optional[bool] = None
    options: Optional[list[str]] = None
    summary_template: Optional[str] = None


class CustomGoalUpdate(BaseModel):
    """Partial update of a custom goal"""
    name: Optional[str] = None
    questions: Optional[list[CustomGoalQuestionUpdate]] = None
