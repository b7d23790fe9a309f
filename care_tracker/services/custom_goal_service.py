"""
CustomGoalService - Patient-Authored Goals

Creates, edits and retires goals that live in the reserved custom category,
together with their ad hoc questions and options. Nothing is hard-deleted:
retired goals and replaced options are deactivated so historical answers
stay intact.
"""

import logging
from typing import Iterable, Optional
from uuid import uuid4

from care_tracker.config import CUSTOM_CATEGORY_NAME
from care_tracker.db import queries
from care_tracker.exceptions import RecordNotFoundError, ValidationError
from care_tracker.models.track import (
    CustomGoalParams,
    CustomGoalQuestion,
    CustomGoalQuestionUpdate,
    CustomGoalUpdate,
    QuestionType,
)
from care_tracker.services.track_service import TrackService
from care_tracker.utils.datetime_helpers import Clock, now_utc

logger = logging.getLogger(__name__)

BOOLEAN_OPTIONS = ("Yes", "No")


def generate_unique_code() -> str:
    """Fresh immutable code for items, questions and options"""
    return str(uuid4())


def build_option_texts(question_type: str, options: Optional[Iterable[str]]) -> list[str]:
    """
    Option texts for a new question.

    Boolean questions always get Yes/No. Choice questions (mcq/msq) get one
    option per non-blank supplied string, trimmed. Other types get none.
    """
    if question_type == QuestionType.BOOLEAN.value:
        return list(BOOLEAN_OPTIONS)
    if question_type in (QuestionType.MCQ.value, QuestionType.MSQ.value) and options:
        return [option.strip() for option in options if option and option.strip()]
    return []


class CustomGoalService:
    """
    Service for custom goals.

    Responsibilities:
    - Create a goal with its questions and default options
    - Apply partial edits (name, individual questions, option sets)
    - Retire a goal for a patient without deleting history
    """

    def __init__(
        self,
        db_connection,
        track_service: Optional[TrackService] = None,
        clock: Optional[Clock] = None,
        custom_category_name: str = CUSTOM_CATEGORY_NAME
    ):
        """
        Initialize CustomGoalService.

        Args:
            db_connection: Database instance
            track_service: Used to link new goals to the patient
            clock: Timestamp provider (defaults to UTC now)
            custom_category_name: Name of the category holding custom goals
        """
        self.db = db_connection
        self.clock = clock or now_utc
        self.track_service = track_service or TrackService(db_connection, clock=self.clock)
        self.custom_category_name = custom_category_name
        logger.debug("CustomGoalService initialized")

    async def add_custom_goal(self, params: CustomGoalParams) -> int:
        """
        Create a custom goal.

        When params.date is set the goal is also linked to the patient from
        that date.

        Returns:
            New track item ID

        Raises:
            RecordNotFoundError: If the custom category does not exist
        """
        logger.debug(f"add_custom_goal called: '{params.name}' for patient {params.patient_id}")

        category = await queries.get_category_by_name(self.db, self.custom_category_name)
        if not category:
            raise RecordNotFoundError(
                message=f"{self.custom_category_name} category not found",
                record_type="TrackCategory",
                record_id=self.custom_category_name,
                operation="add_custom_goal"
            )

        now = self.clock()
        item_id = await queries.insert_track_item(
            self.db,
            category_id=category["id"],
            code=generate_unique_code(),
            name=params.name,
            frequency=params.frequency.value,
            now=now
        )

        for question in params.questions:
            await self._insert_question(item_id, question)

        if params.date:
            await self.track_service.link_item(item_id, params.user_id, params.patient_id, params.date)

        logger.info(f"Created custom goal {item_id} with {len(params.questions)} questions for patient {params.patient_id}")
        return item_id

    async def edit_custom_goal(self, item_id: int, updates: CustomGoalUpdate) -> None:
        """
        Apply a partial edit to a custom goal.

        The name and each question are updated independently; fields that are
        not supplied are left as they are.

        Raises:
            RecordNotFoundError: If the item does not exist, is not a custom
                goal, or an updated question belongs to another item
            ValidationError: If a new question lacks text or type
        """
        logger.debug(f"edit_custom_goal called for item {item_id}")

        await self._get_custom_item(item_id, "edit_custom_goal")

        if updates.name and updates.name.strip():
            await queries.update_track_item(self.db, item_id, {"name": updates.name.strip()}, self.clock())

        for question in updates.questions or []:
            if question.id:
                await self._update_question(item_id, question)
            else:
                await self._insert_question(item_id, self._new_question(question))

        logger.info(f"Edited custom goal {item_id}")

    async def remove_custom_goal(self, item_id: int, patient_id: int) -> None:
        """
        Retire a custom goal: deactivate the item and deselect the patient's
        entries for it. Entries and responses are kept.

        Raises:
            RecordNotFoundError: If the item is not a custom goal
        """
        logger.debug(f"remove_custom_goal called for item {item_id}, patient {patient_id}")
        await self._get_custom_item(item_id, "remove_custom_goal")
        now = self.clock()
        await queries.deactivate_track_item(self.db, item_id, now)
        await queries.deselect_item_entries(self.db, item_id, patient_id, now)
        logger.info(f"Removed custom goal {item_id} for patient {patient_id}")

    # Helpers

    async def _get_custom_item(self, item_id: int, operation: str) -> dict:
        """Load an item, refusing anything outside the custom category"""
        item = await queries.get_track_item(self.db, item_id)
        category = await queries.get_category(self.db, item["category_id"]) if item else None
        if not category or category["name"] != self.custom_category_name:
            raise RecordNotFoundError(
                message=f"Custom goal {item_id} not found",
                record_type="TrackItem",
                record_id=item_id,
                operation=operation
            )
        return item

    @staticmethod
    def _new_question(update: CustomGoalQuestionUpdate) -> CustomGoalQuestion:
        if not update.text or not update.type:
            raise ValidationError(
                message="New questions need text and type",
                field="questions",
                value=update.model_dump()
            )
        return CustomGoalQuestion(
            text=update.text,
            type=update.type,
            required=bool(update.required),
            options=update.options,
            summary_template=update.summary_template,
        )

    async def _insert_question(self, item_id: int, question: CustomGoalQuestion) -> int:
        now = self.clock()
        question_id = await queries.insert_question(
            self.db,
            item_id=item_id,
            code=generate_unique_code(),
            text=question.text,
            question_type=question.type,
            required=question.required,
            now=now,
            summary_template=question.summary_template
        )
        for text in build_option_texts(question.type, question.options):
            await queries.insert_option(self.db, question_id, generate_unique_code(), text, now)
        return question_id

    async def _update_question(self, item_id: int, update: CustomGoalQuestionUpdate) -> None:
        question = await queries.get_question(self.db, update.id)
        if not question or question["item_id"] != item_id:
            raise RecordNotFoundError(
                message=f"Question {update.id} not found on custom goal {item_id}",
                record_type="Question",
                record_id=update.id,
                operation="edit_custom_goal"
            )

        values = {}
        if update.text is not None and update.text.strip():
            values["text"] = update.text.strip()
        if update.type is not None:
            values["type"] = update.type
        if update.required is not None:
            values["required"] = 1 if update.required else 0
        if update.summary_template is not None:
            values["summary_template"] = update.summary_template

        now = self.clock()
        if values:
            await queries.update_question(self.db, update.id, values, now)

        if update.options is not None:
            await queries.deactivate_question_options(self.db, update.id, now)
            for text in update.options:
                if text and text.strip():
                    await queries.insert_option(self.db, update.id, generate_unique_code(), text.strip(), now)
