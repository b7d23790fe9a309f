"""
Database queries - re-exported so callers can use 'from care_tracker.db import queries'.

Module organization:
- tracking.py: Categories, items, entries, questions, options, responses
"""

from care_tracker.db.queries.tracking import (
    get_patient,
    get_active_categories,
    get_category_by_name,
    get_category,
    get_track_item,
    insert_track_item,
    update_track_item,
    get_subscribed_items,
    get_items_with_progress,
    get_selectable_items,
    deactivate_track_item,
    ensure_entry_selected,
    get_entry,
    deselect_item_entries,
    get_item_questions,
    get_question,
    insert_question,
    update_question,
    get_options_for_questions,
    insert_option,
    deactivate_question_options,
    get_entry_responses,
    upsert_response,
    get_summary_rows,
)

__all__ = [
    # Patients
    "get_patient",
    # Categories and items
    "get_active_categories",
    "get_category_by_name",
    "get_category",
    "get_track_item",
    "insert_track_item",
    "update_track_item",
    "get_subscribed_items",
    "get_items_with_progress",
    "get_selectable_items",
    "deactivate_track_item",
    # Entries
    "ensure_entry_selected",
    "get_entry",
    "deselect_item_entries",
    # Questions and options
    "get_item_questions",
    "get_question",
    "insert_question",
    "update_question",
    "get_options_for_questions",
    "insert_option",
    "deactivate_question_options",
    # Responses
    "get_entry_responses",
    "upsert_response",
    "get_summary_rows",
]
