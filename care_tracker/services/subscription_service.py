"""
SubscriptionService - Implicit Subscription Inference

A patient is subscribed to an item when any of their entries for it has ever
been selected. There is no subscription table: on every viewed date the
service materializes the bucket entry of each subscribed item that is due.
"""

import logging
from typing import Optional

from care_tracker.db import queries
from care_tracker.exceptions import ValidationError
from care_tracker.utils.datetime_helpers import Clock, now_utc
from care_tracker.utils.frequency import DateLike, is_bucket_boundary, normalize_bucket_date, parse_track_date

logger = logging.getLogger(__name__)


class SubscriptionService:
    """
    Service for inferring subscriptions and materializing due entries.

    Responsibilities:
    - Find items the patient has ever selected (active items, active categories)
    - Create or reactivate the entry of each item whose bucket opens on a date
    """

    def __init__(self, db_connection, clock: Optional[Clock] = None):
        """
        Initialize SubscriptionService.

        Args:
            db_connection: Database instance
            clock: Timestamp provider (defaults to UTC now)
        """
        self.db = db_connection
        self.clock = clock or now_utc
        logger.debug("SubscriptionService initialized")

    async def ensure_subscribed_entries(self, patient_id: int, date: DateLike) -> int:
        """
        Materialize entries for subscribed items due on a date.

        Entries are only created on bucket boundaries: every day for daily
        items, Mondays for weekly items, the 1st for monthly items. Existing
        deselected entries are reactivated. Safe to call repeatedly.

        Args:
            patient_id: Patient ID
            date: Viewed date (MM-DD-YYYY or YYYY-MM-DD)

        Returns:
            Number of entries inserted or reactivated
        """
        subscribed = await queries.get_subscribed_items(self.db, patient_id)
        if not subscribed:
            logger.debug(f"No subscribed items for patient {patient_id}")
            return 0

        patient = await queries.get_patient(self.db, patient_id)
        if not patient:
            logger.debug(f"Patient {patient_id} not found, skipping entry inference")
            return 0

        day = parse_track_date(date)
        written = 0
        now = self.clock()
        for item in subscribed:
            try:
                if not is_bucket_boundary(day, item["frequency"]):
                    continue
                bucket_date = normalize_bucket_date(day, item["frequency"])
            except ValidationError:
                logger.warning(f"Skipping item {item['id']} with unknown frequency {item['frequency']!r}")
                continue

            if await queries.ensure_entry_selected(
                self.db,
                item_id=item["id"],
                patient_id=patient_id,
                user_id=patient["user_id"],
                date=bucket_date,
                now=now
            ):
                written += 1
                logger.info(f"Materialized entry for item {item['id']}, patient {patient_id}, bucket {bucket_date}")

        return written
