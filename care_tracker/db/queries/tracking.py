"""Tracking database queries: categories, items, entries, questions, responses"""
import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from care_tracker.db.connection import Database
from care_tracker.db.schema import (
    PATIENT,
    QUESTION,
    RESPONSE_OPTION,
    TRACK_CATEGORY,
    TRACK_ITEM,
    TRACK_ITEM_ENTRY,
    TRACK_RESPONSE,
)

logger = logging.getLogger(__name__)

ACTIVE = "active"
INACTIVE = "inactive"


# Patients

async def get_patient(db: Database, patient_id: int) -> Optional[dict]:
    """Get patient row (id, user_id)"""
    return await db.fetch_first(PATIENT, {"id": patient_id})


# Categories and items

async def get_active_categories(db: Database) -> list[dict]:
    """Get all active categories in storage order"""
    return await db.fetch_all(TRACK_CATEGORY, {"status": ACTIVE})


async def get_category_by_name(db: Database, name: str) -> Optional[dict]:
    """Get first category with the given name"""
    return await db.fetch_first(TRACK_CATEGORY, {"name": name})


async def get_category(db: Database, category_id: int) -> Optional[dict]:
    """Get category by id"""
    return await db.fetch_first(TRACK_CATEGORY, {"id": category_id})


async def get_track_item(db: Database, item_id: int) -> Optional[dict]:
    """Get track item by id"""
    return await db.fetch_first(TRACK_ITEM, {"id": item_id})


async def insert_track_item(
    db: Database,
    category_id: int,
    code: str,
    name: str,
    frequency: str,
    now: datetime
) -> int:
    """Create an active track item, returning its id"""
    item_id = await db.insert(TRACK_ITEM, {
        "category_id": category_id,
        "code": code,
        "name": name,
        "frequency": frequency,
        "status": ACTIVE,
        "created_date": now,
        "updated_date": now,
    })
    logger.info(f"Created track item {item_id} ({name}) in category {category_id}")
    return item_id


async def update_track_item(db: Database, item_id: int, values: Mapping[str, Any], now: datetime) -> int:
    """Update fields of a track item"""
    return await db.update(TRACK_ITEM, {**values, "updated_date": now}, {"id": item_id})


async def get_subscribed_items(db: Database, patient_id: int) -> list[dict]:
    """
    Get distinct (id, frequency) of active items in active categories that the
    patient has ever selected
    """
    return await db.run_query(
        f"""
        SELECT DISTINCT ti.id, ti.frequency
        FROM {TRACK_ITEM} ti
        INNER JOIN {TRACK_CATEGORY} tc ON tc.id = ti.category_id
        INNER JOIN {TRACK_ITEM_ENTRY} tie ON tie.track_item_id = ti.id
        WHERE tc.status = 'active'
          AND ti.status = 'active'
          AND tie.patient_id = %s
          AND tie.selected = 1
        ORDER BY ti.id
        """,
        (patient_id,)
    )


async def get_items_with_progress(db: Database, patient_id: int, bucket_dates: Mapping[str, str]) -> list[dict]:
    """
    Get active items joined to the patient's entry for the viewed date.

    Each item is matched against its own bucket date (bucket_dates maps
    frequency -> MM-DD-YYYY). An item is returned when its entry is selected,
    or when the entry exists and holds at least one response. Only items with
    at least one active question are considered.
    """
    return await db.run_query(
        f"""
        SELECT
          ti.id           AS item_id,
          tie.id          AS entry_id,
          ti.name,
          ti.code,
          ti.frequency,
          ti.status,
          ti.category_id,
          ti.created_date,
          ti.updated_date,
          (
            SELECT COUNT(DISTINCT r.question_id)
            FROM {TRACK_RESPONSE} r
            INNER JOIN {QUESTION} rq ON rq.id = r.question_id AND rq.status = 'active'
            WHERE r.track_item_entry_id = tie.id
              AND r.answer IS NOT NULL
          )               AS completed,
          (
            SELECT COUNT(*)
            FROM {QUESTION} q
            WHERE q.item_id = ti.id AND q.status = 'active'
          )               AS total,
          tie.selected    AS is_selected
        FROM {TRACK_ITEM} ti
        INNER JOIN {TRACK_CATEGORY} tc
          ON tc.id = ti.category_id AND tc.status = 'active'
        LEFT JOIN {TRACK_ITEM_ENTRY} tie
          ON tie.track_item_id = ti.id
         AND tie.patient_id = %(patient_id)s
         AND tie.date = CASE ti.frequency
               WHEN 'weekly' THEN %(weekly)s
               WHEN 'monthly' THEN %(monthly)s
               ELSE %(daily)s
             END
        WHERE ti.status = 'active'
          AND EXISTS (
            SELECT 1 FROM {QUESTION} qc
            WHERE qc.item_id = ti.id AND qc.status = 'active'
          )
          AND (
            tie.selected = 1
            OR (
              tie.id IS NOT NULL
              AND EXISTS (
                SELECT 1 FROM {TRACK_RESPONSE} r2
                WHERE r2.track_item_entry_id = tie.id
              )
            )
          )
        ORDER BY ti.id
        """,
        {
            "patient_id": patient_id,
            "daily": bucket_dates["daily"],
            "weekly": bucket_dates["weekly"],
            "monthly": bucket_dates["monthly"],
        }
    )


async def get_selectable_items(db: Database, patient_id: int) -> list[dict]:
    """Get active items of active categories flagged with the patient's subscription"""
    return await db.run_query(
        f"""
        SELECT
            ti.id,
            ti.name,
            ti.code,
            ti.frequency,
            ti.status,
            ti.created_date,
            ti.updated_date,
            ti.category_id,
            EXISTS (
                SELECT 1 FROM {TRACK_ITEM_ENTRY} tie
                WHERE tie.track_item_id = ti.id
                  AND tie.patient_id = %s
                  AND tie.selected = 1
            ) AS selected
        FROM {TRACK_ITEM} ti
        INNER JOIN {TRACK_CATEGORY} tc ON tc.id = ti.category_id AND tc.status = 'active'
        WHERE ti.status = 'active'
        ORDER BY ti.id
        """,
        (patient_id,)
    )


async def deactivate_track_item(db: Database, item_id: int, now: datetime) -> int:
    """Soft-delete a track item"""
    return await update_track_item(db, item_id, {"status": INACTIVE}, now)


# Entries

async def ensure_entry_selected(
    db: Database,
    item_id: int,
    patient_id: int,
    user_id: str,
    date: str,
    now: datetime
) -> bool:
    """
    Insert a selected entry for (item, patient, date), or reactivate the
    existing one. Single statement; a selected entry is left untouched.

    Returns:
        True if a row was inserted or reactivated
    """
    rowcount = await db.execute(
        f"""
        INSERT INTO {TRACK_ITEM_ENTRY}
            (track_item_id, patient_id, user_id, date, selected, created_date, updated_date)
        VALUES (%s, %s, %s, %s, 1, %s, %s)
        ON CONFLICT (track_item_id, patient_id, date)
        DO UPDATE SET selected = 1, updated_date = EXCLUDED.updated_date
        WHERE {TRACK_ITEM_ENTRY}.selected <> 1
        """,
        (item_id, patient_id, user_id, date, now, now)
    )
    return rowcount > 0


async def get_entry(db: Database, item_id: int, patient_id: int, date: str) -> Optional[dict]:
    """Get the entry of (item, patient, bucket date)"""
    return await db.fetch_first(TRACK_ITEM_ENTRY, {
        "track_item_id": item_id,
        "patient_id": patient_id,
        "date": date,
    })


async def deselect_item_entries(db: Database, item_id: int, patient_id: int, now: datetime) -> int:
    """Deselect every entry of (item, patient) across all dates"""
    return await db.update(
        TRACK_ITEM_ENTRY,
        {"selected": 0, "updated_date": now},
        {"track_item_id": item_id, "patient_id": patient_id}
    )


# Questions and options

async def get_question(db: Database, question_id: int) -> Optional[dict]:
    """Get question by id (any status)"""
    return await db.fetch_first(QUESTION, {"id": question_id})


async def get_item_questions(db: Database, item_id: int) -> list[dict]:
    """Get active questions of an item in id order"""
    return await db.fetch_all(QUESTION, {"item_id": item_id, "status": ACTIVE})


async def insert_question(
    db: Database,
    item_id: int,
    code: str,
    text: str,
    question_type: str,
    required: bool,
    now: datetime,
    summary_template: Optional[str] = None
) -> int:
    """Create an active question, returning its id"""
    return await db.insert(QUESTION, {
        "item_id": item_id,
        "code": code,
        "text": text,
        "type": question_type,
        "required": 1 if required else 0,
        "summary_template": summary_template,
        "status": ACTIVE,
        "created_date": now,
        "updated_date": now,
    })


async def update_question(db: Database, question_id: int, values: Mapping[str, Any], now: datetime) -> int:
    """Update fields of a question"""
    return await db.update(QUESTION, {**values, "updated_date": now}, {"id": question_id})


async def get_options_for_questions(db: Database, question_ids: Iterable[int]) -> list[dict]:
    """Get active options of the given questions"""
    ids = list(dict.fromkeys(question_ids))
    if not ids:
        return []
    return await db.run_query(
        f"""
        SELECT * FROM {RESPONSE_OPTION}
        WHERE question_id = ANY(%s)
          AND status = 'active'
        ORDER BY id
        """,
        (ids,)
    )


async def insert_option(db: Database, question_id: int, code: str, text: str, now: datetime) -> int:
    """Create an active response option, returning its id"""
    return await db.insert(RESPONSE_OPTION, {
        "question_id": question_id,
        "code": code,
        "text": text,
        "status": ACTIVE,
        "created_date": now,
        "updated_date": now,
    })


async def deactivate_question_options(db: Database, question_id: int, now: datetime) -> int:
    """Soft-delete every option of a question"""
    return await db.update(
        RESPONSE_OPTION,
        {"status": INACTIVE, "updated_date": now},
        {"question_id": question_id}
    )


# Responses

async def get_entry_responses(db: Database, entry_id: int) -> list[dict]:
    """Get all responses recorded for an entry"""
    return await db.fetch_all(TRACK_RESPONSE, {"track_item_entry_id": entry_id})


async def upsert_response(
    db: Database,
    entry_id: int,
    question_id: int,
    user_id: str,
    patient_id: int,
    answer: str,
    now: datetime
) -> None:
    """Insert a response or update it in place (single statement)"""
    await db.execute(
        f"""
        INSERT INTO {TRACK_RESPONSE}
            (track_item_entry_id, question_id, user_id, patient_id, answer, created_date, updated_date)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        ON CONFLICT (track_item_entry_id, question_id, user_id, patient_id)
        DO UPDATE SET answer = EXCLUDED.answer, updated_date = EXCLUDED.updated_date
        """,
        (entry_id, question_id, user_id, patient_id, answer, now, now)
    )


async def get_summary_rows(db: Database, entry_id: int) -> list[dict]:
    """
    Get the active questions of an entry's item with the owning category name
    and the entry's answer (if any), in question id order
    """
    return await db.run_query(
        f"""
        SELECT
            q.*,
            tc.name AS category_name,
            r.answer,
            r.created_date AS response_created_date,
            r.updated_date AS response_updated_date
        FROM {QUESTION} q
        INNER JOIN {TRACK_ITEM_ENTRY} tie ON tie.track_item_id = q.item_id AND tie.id = %(entry_id)s
        INNER JOIN {TRACK_ITEM} ti ON ti.id = q.item_id
        INNER JOIN {TRACK_CATEGORY} tc ON tc.id = ti.category_id
        LEFT JOIN {TRACK_RESPONSE} r ON r.question_id = q.id AND r.track_item_entry_id = %(entry_id)s
        WHERE q.status = 'active'
        ORDER BY q.id
        """,
        {"entry_id": entry_id}
    )
