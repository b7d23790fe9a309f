"""In-memory stand-in for care_tracker.db.queries used by service-level tests

Implements the same coroutine functions (with the same arguments) over plain
lists of dict rows, so the services can be exercised end to end without
PostgreSQL. Patch it over the `queries` name of a service module.
"""
import itertools
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

SEED_TIME = datetime(2024, 1, 1, 8, 0, 0, tzinfo=timezone.utc)


class InMemoryTracking:
    """Tracking tables held in memory"""

    def __init__(self):
        self._ids = itertools.count(1)
        self.patients: list[dict] = []
        self.categories: list[dict] = []
        self.items: list[dict] = []
        self.entries: list[dict] = []
        self.questions: list[dict] = []
        self.options: list[dict] = []
        self.responses: list[dict] = []

    # Seeding helpers

    def add_patient(self, user_id: str = "user-1") -> int:
        row = {"id": next(self._ids), "user_id": user_id}
        self.patients.append(row)
        return row["id"]

    def add_category(self, name: str, status: str = "active") -> int:
        row = {"id": next(self._ids), "name": name, "status": status,
               "created_date": SEED_TIME, "updated_date": SEED_TIME}
        self.categories.append(row)
        return row["id"]

    def add_item(self, category_id: int, name: str, frequency: str = "daily", status: str = "active") -> int:
        item_id = next(self._ids)
        self.items.append({
            "id": item_id, "category_id": category_id, "code": f"item-{item_id}", "name": name,
            "frequency": frequency, "status": status,
            "created_date": SEED_TIME, "updated_date": SEED_TIME,
        })
        return item_id

    def add_question(
        self,
        item_id: int,
        text: str,
        type: str = "text",
        summary_template: Optional[str] = None,
        parent_question_id: Optional[int] = None,
        display_condition: Optional[str] = None,
        status: str = "active"
    ) -> int:
        question_id = next(self._ids)
        self.questions.append({
            "id": question_id, "item_id": item_id, "code": f"q-{question_id}", "text": text,
            "type": type, "required": 0, "summary_template": summary_template, "status": status,
            "parent_question_id": parent_question_id, "display_condition": display_condition,
            "created_date": SEED_TIME, "updated_date": SEED_TIME,
        })
        return question_id

    def add_choice(self, question_id: int, text: str, code: Optional[str] = None, status: str = "active") -> int:
        option_id = next(self._ids)
        self.options.append({
            "id": option_id, "question_id": question_id, "code": code or f"o-{option_id}",
            "text": text, "status": status, "created_date": SEED_TIME, "updated_date": SEED_TIME,
        })
        return option_id

    def add_entry(self, item_id: int, patient_id: int, date: str, selected: int = 1, user_id: str = "user-1") -> int:
        entry_id = next(self._ids)
        self.entries.append({
            "id": entry_id, "track_item_id": item_id, "patient_id": patient_id, "user_id": user_id,
            "date": date, "selected": selected, "created_date": SEED_TIME, "updated_date": SEED_TIME,
        })
        return entry_id

    def add_answer(self, entry_id: int, question_id: int, answer: Optional[str], patient_id: int,
                   user_id: str = "user-1", updated_date: datetime = SEED_TIME) -> int:
        response_id = next(self._ids)
        self.responses.append({
            "id": response_id, "track_item_entry_id": entry_id, "question_id": question_id,
            "user_id": user_id, "patient_id": patient_id, "answer": answer,
            "created_date": SEED_TIME, "updated_date": updated_date,
        })
        return response_id

    # Lookups

    @staticmethod
    def _first(rows: list[dict], **filters) -> Optional[dict]:
        for row in rows:
            if all(row.get(key) == value for key, value in filters.items()):
                return row
        return None

    def _by_id(self, rows: list[dict], row_id: Any) -> Optional[dict]:
        return self._first(rows, id=row_id)

    def _active_category_ids(self) -> set:
        return {c["id"] for c in self.categories if c["status"] == "active"}

    def _active_questions(self, item_id: int) -> list[dict]:
        return [q for q in self.questions if q["item_id"] == item_id and q["status"] == "active"]

    # Patients

    async def get_patient(self, db, patient_id: int) -> Optional[dict]:
        row = self._by_id(self.patients, patient_id)
        return dict(row) if row else None

    # Categories and items

    async def get_active_categories(self, db) -> list[dict]:
        return [dict(c) for c in self.categories if c["status"] == "active"]

    async def get_category_by_name(self, db, name: str) -> Optional[dict]:
        row = self._first(self.categories, name=name)
        return dict(row) if row else None

    async def get_category(self, db, category_id: int) -> Optional[dict]:
        row = self._by_id(self.categories, category_id)
        return dict(row) if row else None

    async def get_track_item(self, db, item_id: int) -> Optional[dict]:
        row = self._by_id(self.items, item_id)
        return dict(row) if row else None

    async def insert_track_item(self, db, category_id: int, code: str, name: str, frequency: str,
                                now: datetime) -> int:
        item_id = next(self._ids)
        self.items.append({
            "id": item_id, "category_id": category_id, "code": code, "name": name,
            "frequency": frequency, "status": "active", "created_date": now, "updated_date": now,
        })
        return item_id

    async def update_track_item(self, db, item_id: int, values: Mapping[str, Any], now: datetime) -> int:
        row = self._by_id(self.items, item_id)
        if not row:
            return 0
        row.update(values, updated_date=now)
        return 1

    async def deactivate_track_item(self, db, item_id: int, now: datetime) -> int:
        return await self.update_track_item(db, item_id, {"status": "inactive"}, now)

    async def get_subscribed_items(self, db, patient_id: int) -> list[dict]:
        active_categories = self._active_category_ids()
        selected_items = {
            e["track_item_id"] for e in self.entries
            if e["patient_id"] == patient_id and e["selected"] == 1
        }
        return [
            {"id": i["id"], "frequency": i["frequency"]}
            for i in self.items
            if i["id"] in selected_items and i["status"] == "active" and i["category_id"] in active_categories
        ]

    async def get_items_with_progress(self, db, patient_id: int, bucket_dates: Mapping[str, str]) -> list[dict]:
        active_categories = self._active_category_ids()
        rows = []
        for item in self.items:
            if item["status"] != "active" or item["category_id"] not in active_categories:
                continue
            questions = self._active_questions(item["id"])
            if not questions:
                continue

            bucket = bucket_dates.get(item["frequency"], bucket_dates["daily"])
            entry = self._first(self.entries, track_item_id=item["id"], patient_id=patient_id, date=bucket)
            entry_responses = [r for r in self.responses if entry and r["track_item_entry_id"] == entry["id"]]
            if not entry or not (entry["selected"] == 1 or entry_responses):
                continue

            active_ids = {q["id"] for q in questions}
            completed = {
                r["question_id"] for r in entry_responses
                if r["answer"] is not None and r["question_id"] in active_ids
            }
            rows.append({
                "item_id": item["id"], "entry_id": entry["id"], "name": item["name"], "code": item["code"],
                "frequency": item["frequency"], "status": item["status"], "category_id": item["category_id"],
                "created_date": item["created_date"], "updated_date": item["updated_date"],
                "completed": len(completed), "total": len(questions), "is_selected": entry["selected"],
            })
        return rows

    async def get_selectable_items(self, db, patient_id: int) -> list[dict]:
        active_categories = self._active_category_ids()
        return [
            dict(item, selected=any(
                e["track_item_id"] == item["id"] and e["patient_id"] == patient_id and e["selected"] == 1
                for e in self.entries
            ))
            for item in self.items
            if item["status"] == "active" and item["category_id"] in active_categories
        ]

    # Entries

    async def ensure_entry_selected(self, db, item_id: int, patient_id: int, user_id: str, date: str,
                                    now: datetime) -> bool:
        entry = self._first(self.entries, track_item_id=item_id, patient_id=patient_id, date=date)
        if entry is None:
            self.entries.append({
                "id": next(self._ids), "track_item_id": item_id, "patient_id": patient_id, "user_id": user_id,
                "date": date, "selected": 1, "created_date": now, "updated_date": now,
            })
            return True
        if entry["selected"] != 1:
            entry.update(selected=1, updated_date=now)
            return True
        return False

    async def get_entry(self, db, item_id: int, patient_id: int, date: str) -> Optional[dict]:
        row = self._first(self.entries, track_item_id=item_id, patient_id=patient_id, date=date)
        return dict(row) if row else None

    async def deselect_item_entries(self, db, item_id: int, patient_id: int, now: datetime) -> int:
        count = 0
        for entry in self.entries:
            if entry["track_item_id"] == item_id and entry["patient_id"] == patient_id:
                entry.update(selected=0, updated_date=now)
                count += 1
        return count

    # Questions and options

    async def get_question(self, db, question_id: int) -> Optional[dict]:
        row = self._by_id(self.questions, question_id)
        return dict(row) if row else None

    async def get_item_questions(self, db, item_id: int) -> list[dict]:
        return [dict(q) for q in self._active_questions(item_id)]

    async def insert_question(self, db, item_id: int, code: str, text: str, question_type: str, required: bool,
                              now: datetime, summary_template: Optional[str] = None) -> int:
        question_id = next(self._ids)
        self.questions.append({
            "id": question_id, "item_id": item_id, "code": code, "text": text, "type": question_type,
            "required": 1 if required else 0, "summary_template": summary_template, "status": "active",
            "parent_question_id": None, "display_condition": None, "created_date": now, "updated_date": now,
        })
        return question_id

    async def update_question(self, db, question_id: int, values: Mapping[str, Any], now: datetime) -> int:
        row = self._by_id(self.questions, question_id)
        if not row:
            return 0
        row.update(values, updated_date=now)
        return 1

    async def get_options_for_questions(self, db, question_ids: Iterable[int]) -> list[dict]:
        ids = set(question_ids)
        return [dict(o) for o in self.options if o["question_id"] in ids and o["status"] == "active"]

    async def insert_option(self, db, question_id: int, code: str, text: str, now: datetime) -> int:
        option_id = next(self._ids)
        self.options.append({
            "id": option_id, "question_id": question_id, "code": code, "text": text, "status": "active",
            "created_date": now, "updated_date": now,
        })
        return option_id

    async def deactivate_question_options(self, db, question_id: int, now: datetime) -> int:
        count = 0
        for option in self.options:
            if option["question_id"] == question_id:
                option.update(status="inactive", updated_date=now)
                count += 1
        return count

    # Responses

    async def get_entry_responses(self, db, entry_id: int) -> list[dict]:
        return [dict(r) for r in self.responses if r["track_item_entry_id"] == entry_id]

    async def upsert_response(self, db, entry_id: int, question_id: int, user_id: str, patient_id: int,
                              answer: str, now: datetime) -> None:
        row = self._first(self.responses, track_item_entry_id=entry_id, question_id=question_id,
                          user_id=user_id, patient_id=patient_id)
        if row:
            row.update(answer=answer, updated_date=now)
        else:
            self.responses.append({
                "id": next(self._ids), "track_item_entry_id": entry_id, "question_id": question_id,
                "user_id": user_id, "patient_id": patient_id, "answer": answer,
                "created_date": now, "updated_date": now,
            })

    async def get_summary_rows(self, db, entry_id: int) -> list[dict]:
        entry = self._by_id(self.entries, entry_id)
        if not entry:
            return []
        item = self._by_id(self.items, entry["track_item_id"])
        category = self._by_id(self.categories, item["category_id"])

        rows = []
        for question in sorted(self._active_questions(item["id"]), key=lambda q: q["id"]):
            matches = [
                r for r in self.responses
                if r["track_item_entry_id"] == entry_id and r["question_id"] == question["id"]
            ] or [None]
            for response in matches:
                rows.append(dict(
                    question,
                    category_name=category["name"],
                    answer=response["answer"] if response else None,
                    response_created_date=response["created_date"] if response else None,
                    response_updated_date=response["updated_date"] if response else None,
                ))
        return rows
