"""
SQLite schema for the record store.
"""

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS patients (
        id TEXT PRIMARY KEY,
        phone TEXT NOT NULL UNIQUE,
        name TEXT,
        is_returning_patient INTEGER NOT NULL DEFAULT 0,
        notes TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS conversations (
        id TEXT PRIMARY KEY,
        patient_id TEXT NOT NULL REFERENCES patients(id),
        status TEXT NOT NULL DEFAULT 'active',
        current_step TEXT,
        context TEXT NOT NULL DEFAULT '{}',
        started_at TEXT NOT NULL,
        ended_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    # At most one active conversation per patient
    """
    CREATE UNIQUE INDEX IF NOT EXISTS ux_conversations_active_patient
    ON conversations(patient_id) WHERE status = 'active'
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id TEXT PRIMARY KEY,
        conversation_id TEXT NOT NULL REFERENCES conversations(id),
        direction TEXT NOT NULL,
        content TEXT NOT NULL,
        message_type TEXT NOT NULL DEFAULT 'text',
        metadata TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_messages_conversation
    ON messages(conversation_id, created_at)
    """,
    """
    CREATE TABLE IF NOT EXISTS handoffs (
        id TEXT PRIMARY KEY,
        conversation_id TEXT NOT NULL REFERENCES conversations(id),
        patient_id TEXT NOT NULL REFERENCES patients(id),
        reason TEXT NOT NULL,
        summary TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        handled_by TEXT,
        created_at TEXT NOT NULL,
        handled_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS appointments (
        id TEXT PRIMARY KEY,
        patient_id TEXT NOT NULL REFERENCES patients(id),
        conversation_id TEXT REFERENCES conversations(id),
        doctor TEXT NOT NULL,
        appointment_type TEXT NOT NULL,
        appointment_date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        preferred_period TEXT,
        notes TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
]
