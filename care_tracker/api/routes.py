"""API routes for goal tracking"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status

from care_tracker.api.models import (
    SaveResponseRequest,
    AddOptionRequest, OptionCreatedResponse,
    LinkItemRequest, LinkItemResponse,
    UnlinkItemRequest, UnlinkItemResponse,
    SummariesResponse,
    VisibilityRequest, VisibilityResponse,
    CustomGoalCreatedResponse,
    HealthCheckResponse,
)
from care_tracker.engine.visibility import is_question_visible
from care_tracker.models.track import (
    CustomGoalParams,
    CustomGoalUpdate,
    QuestionWithOptions,
    TrackCategoryWithItems,
    TrackCategoryWithSelectableItems,
)
from care_tracker.services.container import ServiceContainer, get_container
from care_tracker.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

router = APIRouter()


def get_services() -> ServiceContainer:
    """Dependency returning the service container"""
    return get_container()


# Views

@router.get("/api/v1/patients/{patient_id}/view", response_model=List[TrackCategoryWithItems])
async def get_dated_view(
    patient_id: int,
    date: str = Query(..., description="MM-DD-YYYY (or YYYY-MM-DD)"),
    services: ServiceContainer = Depends(get_services)
):
    """Categories with the patient's items, progress and summaries for a date"""
    return await services.track_service.get_dated_view(patient_id, date)


@router.get("/api/v1/patients/{patient_id}/selectable", response_model=List[TrackCategoryWithSelectableItems])
async def get_selectable_categories(
    patient_id: int,
    services: ServiceContainer = Depends(get_services)
):
    """All active categories and items with the patient's subscription flags"""
    return await services.track_service.get_selectable_categories(patient_id)


# Questions and answers

@router.get("/api/v1/items/{item_id}/questions", response_model=List[QuestionWithOptions])
async def get_questions_with_options(
    item_id: int,
    entry_id: Optional[int] = None,
    services: ServiceContainer = Depends(get_services)
):
    """Questions of an item with options, existing answers and visibility"""
    return await services.track_service.get_questions_with_options(item_id, entry_id)


@router.post("/api/v1/entries/{entry_id}/responses", status_code=status.HTTP_204_NO_CONTENT)
async def save_response(
    entry_id: int,
    request: SaveResponseRequest,
    services: ServiceContainer = Depends(get_services)
):
    """Record (or overwrite) an answer for an entry"""
    await services.track_service.save_response(
        entry_id, request.question_id, request.answer, request.user_id, request.patient_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/v1/entries/{entry_id}/summaries", response_model=SummariesResponse)
async def get_summaries(
    entry_id: int,
    services: ServiceContainer = Depends(get_services)
):
    """Rendered summaries of an entry"""
    summaries = await services.track_service.get_summaries(entry_id)
    return SummariesResponse(entry_id=entry_id, summaries=summaries)


@router.post(
    "/api/v1/questions/{question_id}/options",
    response_model=OptionCreatedResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_option(
    question_id: int,
    request: AddOptionRequest,
    services: ServiceContainer = Depends(get_services)
):
    """Add a response option to a question"""
    option_id = await services.track_service.add_option(question_id, request.label)
    return OptionCreatedResponse(option_id=option_id)


@router.post("/api/v1/questions/visibility", response_model=VisibilityResponse)
async def evaluate_visibility(request: VisibilityRequest):
    """Evaluate a question's visibility against a set of answers"""
    visible = is_question_visible(request.question, request.answers, request.questions, request.options)
    return VisibilityResponse(question_id=request.question.id, visible=visible)


# Subscriptions

@router.post("/api/v1/items/{item_id}/link", response_model=LinkItemResponse)
async def link_item(
    item_id: int,
    request: LinkItemRequest,
    services: ServiceContainer = Depends(get_services)
):
    """Subscribe a patient to an item from a date"""
    entry_id = await services.track_service.link_item(item_id, request.user_id, request.patient_id, request.date)
    return LinkItemResponse(entry_id=entry_id)


@router.post("/api/v1/items/{item_id}/unlink", response_model=UnlinkItemResponse)
async def unlink_item(
    item_id: int,
    request: UnlinkItemRequest,
    services: ServiceContainer = Depends(get_services)
):
    """Unsubscribe a patient from an item on every date"""
    count = await services.track_service.unlink_item(item_id, request.patient_id)
    return UnlinkItemResponse(deselected=count)


# Custom goals

@router.post(
    "/api/v1/custom-goals",
    response_model=CustomGoalCreatedResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_custom_goal(
    params: CustomGoalParams,
    services: ServiceContainer = Depends(get_services)
):
    """Create a custom goal"""
    item_id = await services.custom_goal_service.add_custom_goal(params)
    return CustomGoalCreatedResponse(item_id=item_id)


@router.patch("/api/v1/custom-goals/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def edit_custom_goal(
    item_id: int,
    updates: CustomGoalUpdate,
    services: ServiceContainer = Depends(get_services)
):
    """Partially update a custom goal"""
    await services.custom_goal_service.edit_custom_goal(item_id, updates)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/api/v1/custom-goals/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_custom_goal(
    item_id: int,
    patient_id: int = Query(..., description="Patient whose entries are deselected"),
    services: ServiceContainer = Depends(get_services)
):
    """Retire a custom goal for a patient"""
    await services.custom_goal_service.remove_custom_goal(item_id, patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Health

@router.get("/api/health", response_model=HealthCheckResponse)
async def health_check(services: ServiceContainer = Depends(get_services)):
    """Health check endpoint"""
    try:
        await services.db.run_query("SELECT 1 AS ok")
        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"

    return HealthCheckResponse(
        status="healthy" if db_status == "connected" else "degraded",
        database=db_status,
        timestamp=now_utc()
    )
