"""PostgreSQL schema for tracking tables"""
import logging

from care_tracker.db.connection import Database

logger = logging.getLogger(__name__)

# Table names
TRACK_CATEGORY = "track_category"
TRACK_ITEM = "track_item"
TRACK_ITEM_ENTRY = "track_item_entry"
QUESTION = "question"
RESPONSE_OPTION = "response_option"
TRACK_RESPONSE = "track_response"
PATIENT = "patient"

SCHEMA_STATEMENTS: list[str] = [
    f"""
    CREATE TABLE IF NOT EXISTS {PATIENT} (
        id SERIAL PRIMARY KEY,
        user_id TEXT NOT NULL,
        created_date TIMESTAMPTZ DEFAULT NOW(),
        updated_date TIMESTAMPTZ DEFAULT NOW()
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {TRACK_CATEGORY} (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'active',
        created_date TIMESTAMPTZ DEFAULT NOW(),
        updated_date TIMESTAMPTZ DEFAULT NOW()
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {TRACK_ITEM} (
        id SERIAL PRIMARY KEY,
        category_id INTEGER NOT NULL REFERENCES {TRACK_CATEGORY}(id),
        code TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        frequency TEXT NOT NULL DEFAULT 'daily',
        status TEXT NOT NULL DEFAULT 'active',
        created_date TIMESTAMPTZ DEFAULT NOW(),
        updated_date TIMESTAMPTZ DEFAULT NOW()
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {TRACK_ITEM_ENTRY} (
        id SERIAL PRIMARY KEY,
        track_item_id INTEGER NOT NULL REFERENCES {TRACK_ITEM}(id),
        patient_id INTEGER NOT NULL,
        user_id TEXT NOT NULL,
        date TEXT NOT NULL,
        selected SMALLINT NOT NULL DEFAULT 1,
        created_date TIMESTAMPTZ DEFAULT NOW(),
        updated_date TIMESTAMPTZ DEFAULT NOW(),
        UNIQUE (track_item_id, patient_id, date)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {QUESTION} (
        id SERIAL PRIMARY KEY,
        item_id INTEGER NOT NULL REFERENCES {TRACK_ITEM}(id),
        code TEXT NOT NULL UNIQUE,
        text TEXT NOT NULL,
        type TEXT NOT NULL,
        required SMALLINT NOT NULL DEFAULT 0,
        summary_template TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        instructions TEXT,
        subtype TEXT,
        units TEXT,
        min DOUBLE PRECISION,
        max DOUBLE PRECISION,
        precision INTEGER,
        parent_question_id INTEGER REFERENCES {QUESTION}(id),
        display_condition TEXT,
        created_date TIMESTAMPTZ DEFAULT NOW(),
        updated_date TIMESTAMPTZ DEFAULT NOW()
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {RESPONSE_OPTION} (
        id SERIAL PRIMARY KEY,
        question_id INTEGER NOT NULL REFERENCES {QUESTION}(id),
        code TEXT NOT NULL,
        text TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'active',
        created_date TIMESTAMPTZ DEFAULT NOW(),
        updated_date TIMESTAMPTZ DEFAULT NOW()
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {TRACK_RESPONSE} (
        id SERIAL PRIMARY KEY,
        track_item_entry_id INTEGER NOT NULL REFERENCES {TRACK_ITEM_ENTRY}(id),
        question_id INTEGER NOT NULL REFERENCES {QUESTION}(id),
        user_id TEXT NOT NULL,
        patient_id INTEGER NOT NULL,
        answer TEXT,
        created_date TIMESTAMPTZ DEFAULT NOW(),
        updated_date TIMESTAMPTZ DEFAULT NOW(),
        UNIQUE (track_item_entry_id, question_id, user_id, patient_id)
    )
    """,
    f"CREATE INDEX IF NOT EXISTS idx_entry_patient_item ON {TRACK_ITEM_ENTRY} (patient_id, track_item_id)",
    f"CREATE INDEX IF NOT EXISTS idx_question_item ON {QUESTION} (item_id)",
    f"CREATE INDEX IF NOT EXISTS idx_option_question ON {RESPONSE_OPTION} (question_id)",
]


async def create_schema(database: Database) -> None:
    """Create tracking tables if they do not exist"""
    logger.info("Applying tracking schema")
    async with database.connection() as conn:
        async with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                await cur.execute(statement)
        await conn.commit()
    logger.info(f"Tracking schema ready ({len(SCHEMA_STATEMENTS)} statements)")
