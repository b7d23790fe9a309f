"""
TrackService - Goal Tracking Business Logic

Assembles the patient's dated view (categories -> items -> progress and
summaries), the subscription picker, and question sets with visibility, and
records answers, options and item links.
"""

import json
import logging
from typing import Any, List, Optional
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from care_tracker.config import CUSTOM_CATEGORY_NAME
from care_tracker.db import queries
from care_tracker.engine.summary import generate_summary
from care_tracker.engine.visibility import QuestionGraph
from care_tracker.exceptions import ValidationError
from care_tracker.models.track import (
    Question,
    QuestionWithOptions,
    ResponseOption,
    TrackCategory,
    TrackCategoryWithItems,
    TrackCategoryWithSelectableItems,
    TrackItem,
    TrackItemSelectable,
    TrackItemWithProgress,
    TrackResponse,
    TrackingFrequency,
)
from care_tracker.services.subscription_service import SubscriptionService
from care_tracker.utils.datetime_helpers import Clock, now_utc, parse_timestamp
from care_tracker.utils.frequency import DateLike, bucket_dates_for, format_track_date, normalize_bucket_date

logger = logging.getLogger(__name__)


def _item_from_row(row: dict, id_field: str = "id") -> TrackItem:
    return TrackItem(
        id=row[id_field],
        category_id=row["category_id"],
        code=row["code"],
        name=row["name"],
        frequency=row["frequency"],
        status=row["status"],
        created_date=row.get("created_date"),
        updated_date=row.get("updated_date"),
    )


def _items_from_rows(rows: List[dict], id_field: str = "id") -> List[tuple]:
    """Pair each row with its TrackItem, skipping rows that do not validate"""
    pairs = []
    for row in rows:
        try:
            pairs.append((row, _item_from_row(row, id_field=id_field)))
        except PydanticValidationError as e:
            logger.warning(f"Skipping track item {row.get(id_field)}: {e.error_count()} invalid field(s)")
    return pairs


class TrackService:
    """
    Service for patient goal tracking.

    Responsibilities:
    - Dated view with per-entry progress and summaries
    - Selectable items with the patient's subscription flag
    - Questions with options, existing answers and visibility
    - Saving answers, adding options, linking and unlinking items
    """

    def __init__(
        self,
        db_connection,
        subscription_service: Optional[SubscriptionService] = None,
        clock: Optional[Clock] = None,
        custom_category_name: str = CUSTOM_CATEGORY_NAME
    ):
        """
        Initialize TrackService.

        Args:
            db_connection: Database instance
            subscription_service: Inferencer run before each dated view
            clock: Timestamp provider (defaults to UTC now)
            custom_category_name: Name of the category holding custom goals
        """
        self.db = db_connection
        self.clock = clock or now_utc
        self.subscriptions = subscription_service or SubscriptionService(db_connection, self.clock)
        self.custom_category_name = custom_category_name
        logger.debug("TrackService initialized")

    # Dated view

    async def get_dated_view(self, patient_id: int, date: DateLike) -> List[TrackCategoryWithItems]:
        """
        Get active categories with the patient's items for a date.

        Subscription inference runs first on a best-effort basis. Items are
        included when their entry for the date's bucket is selected, or when
        that entry already holds answers. Item rows that fail validation are
        logged and left out.

        Args:
            patient_id: Patient ID
            date: Viewed date (MM-DD-YYYY or YYYY-MM-DD)

        Returns:
            Categories in storage order, each with its included items
        """
        logger.debug(f"get_dated_view called for patient {patient_id} on {date}")
        bucket_dates = bucket_dates_for(date)

        try:
            await self.subscriptions.ensure_subscribed_entries(patient_id, date)
        except Exception as e:
            logger.error(f"Subscription inference failed for patient {patient_id} on {date}: {e}", exc_info=True)

        categories = await queries.get_active_categories(self.db)
        rows = await queries.get_items_with_progress(self.db, patient_id, bucket_dates)

        pairs = _items_from_rows(rows, id_field="item_id")

        result: List[TrackCategoryWithItems] = []
        for category in categories:
            items: List[TrackItemWithProgress] = []
            for row, item in pairs:
                if row["category_id"] != category["id"]:
                    continue
                entry_id = row.get("entry_id")
                items.append(TrackItemWithProgress(
                    item=item,
                    entry_id=entry_id,
                    completed=row.get("completed") or 0,
                    total=row.get("total") or 0,
                    summaries=await self._safe_summaries(entry_id) if entry_id else [],
                ))
            result.append(TrackCategoryWithItems(**TrackCategory.model_validate(category).model_dump(), items=items))

        logger.debug(f"get_dated_view completed: {len(result)} categories, {len(rows)} items")
        return result

    async def _safe_summaries(self, entry_id: int) -> List[str]:
        try:
            return await self.get_summaries(entry_id)
        except Exception as e:
            logger.error(f"Error building summaries for entry {entry_id}: {e}", exc_info=True)
            return []

    async def get_selectable_categories(self, patient_id: int) -> List[TrackCategoryWithSelectableItems]:
        """
        Get every active category with all its active items.

        An item is flagged selected when the patient has any selected entry
        for it, on any date. Item rows that fail validation (an unknown
        frequency, say) are logged and left out.
        """
        categories = await queries.get_active_categories(self.db)
        pairs = _items_from_rows(await queries.get_selectable_items(self.db, patient_id))

        return [
            TrackCategoryWithSelectableItems(
                category=TrackCategory.model_validate(category),
                items=[
                    TrackItemSelectable(item=item, selected=bool(row["selected"]))
                    for row, item in pairs
                    if row["category_id"] == category["id"]
                ]
            )
            for category in categories
        ]

    # Questions and answers

    async def get_questions_with_options(self, item_id: int, entry_id: Optional[int] = None) -> List[QuestionWithOptions]:
        """
        Get an item's active questions with options, the entry's existing
        responses and each question's visibility under those responses.

        Args:
            item_id: Track item ID
            entry_id: Entry whose responses to attach (optional)
        """
        logger.debug(f"get_questions_with_options called for item {item_id}, entry {entry_id}")
        questions = [Question.model_validate(row) for row in await queries.get_item_questions(self.db, item_id)]
        options = [
            ResponseOption.model_validate(row)
            for row in await queries.get_options_for_questions(self.db, [q.id for q in questions])
        ]
        responses = await queries.get_entry_responses(self.db, entry_id) if entry_id else []

        response_map = {row["question_id"]: TrackResponse.model_validate(row) for row in responses}
        answers = {question_id: response.answer for question_id, response in response_map.items()}

        graph = QuestionGraph(questions, options)
        cache: dict[int, bool] = {}
        return [
            QuestionWithOptions(
                question=question,
                options=[option for option in options if option.question_id == question.id],
                existing_response=response_map.get(question.id),
                visible=graph.is_visible(question.id, answers, cache),
            )
            for question in questions
        ]

    async def save_response(
        self,
        entry_id: int,
        question_id: int,
        answer: Any,
        user_id: str,
        patient_id: int
    ) -> None:
        """
        Record an answer, updating the existing response in place.

        The answer is stored JSON-encoded whatever its shape.
        """
        logger.debug(f"save_response called: entry {entry_id}, question {question_id}")
        await queries.upsert_response(
            self.db,
            entry_id=entry_id,
            question_id=question_id,
            user_id=user_id,
            patient_id=patient_id,
            answer=json.dumps(answer),
            now=self.clock()
        )
        logger.info(f"Saved response for entry {entry_id}, question {question_id}, patient {patient_id}")

    async def add_option(self, question_id: int, label: str) -> int:
        """
        Add a response option to a question.

        Returns:
            New option ID

        Raises:
            ValidationError: If the label is blank
        """
        text = (label or "").strip()
        if not text:
            raise ValidationError(message="Option label cannot be empty", field="label", value=label)

        option_id = await queries.insert_option(self.db, question_id, str(uuid4()), text, self.clock())
        logger.info(f"Added option {option_id} to question {question_id}")
        return option_id

    # Subscriptions

    async def link_item(self, item_id: int, user_id: str, patient_id: int, date: DateLike) -> Optional[int]:
        """
        Subscribe a patient to an item from a date.

        The date is normalized by the item's frequency (daily when the item is
        unknown); the bucket entry is created or reactivated.

        Returns:
            ID of the bucket entry
        """
        item = await queries.get_track_item(self.db, item_id)
        frequency = item["frequency"] if item else TrackingFrequency.DAILY.value
        bucket_date = normalize_bucket_date(date, frequency)

        await queries.ensure_entry_selected(
            self.db,
            item_id=item_id,
            patient_id=patient_id,
            user_id=user_id,
            date=bucket_date,
            now=self.clock()
        )
        entry = await queries.get_entry(self.db, item_id, patient_id, bucket_date)
        logger.info(f"Linked item {item_id} to patient {patient_id} for bucket {bucket_date}")
        return entry["id"] if entry else None

    async def unlink_item(self, item_id: int, patient_id: int) -> int:
        """
        Unsubscribe a patient from an item.

        Every entry of the pair is deselected, across all dates.

        Returns:
            Number of entries deselected
        """
        count = await queries.deselect_item_entries(self.db, item_id, patient_id, self.clock())
        logger.info(f"Unlinked item {item_id} from patient {patient_id} ({count} entries deselected)")
        return count

    # Summaries

    async def get_summaries(self, entry_id: int) -> List[str]:
        """
        Render the summaries of an entry.

        For each active question of the entry's item, in ascending id order,
        that has an answer, a summary template and is visible, the rendered
        template is collected. Custom goals summarize as a single
        'Last updated: MM-DD-YYYY' line instead.
        """
        rows = await queries.get_summary_rows(self.db, entry_id)
        if not rows:
            return []

        is_custom = rows[0]["category_name"] == self.custom_category_name

        answers: dict[int, Optional[str]] = {}
        last_updated = None
        for row in rows:
            if row.get("answer") is None:
                continue
            answers[row["id"]] = row["answer"]
            touched = parse_timestamp(row.get("response_updated_date") or row.get("response_created_date"))
            if touched and (last_updated is None or touched > last_updated):
                last_updated = touched

        if not answers:
            return []

        if is_custom:
            return [f"Last updated: {format_track_date(last_updated.date())}"] if last_updated else []

        questions: dict[int, Question] = {}
        for row in rows:
            questions.setdefault(row["id"], Question.model_validate(row))
        options = await queries.get_options_for_questions(self.db, questions.keys())

        graph = QuestionGraph(questions.values(), options)
        cache: dict[int, bool] = {}
        summaries: List[str] = []
        for question in questions.values():
            answer = answers.get(question.id)
            if not answer or not question.summary_template:
                continue
            if graph.is_visible(question.id, answers, cache):
                summary = generate_summary(question.summary_template, answer)
                if summary:
                    summaries.append(summary)

        return summaries
