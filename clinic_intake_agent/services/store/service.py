"""
Record store for patients, conversations, messages, handoffs and appointments.
"""

import asyncio
import json
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ...config import DatabaseConfig
from ...core.enums import ConversationStatus, HandoffStatus, MessageDirection
from ...core.models import (
    Appointment,
    AppointmentCreate,
    AppointmentWithPatient,
    Conversation,
    ConversationWithPatient,
    DashboardMetrics,
    Handoff,
    HandoffWithDetails,
    Message,
    Patient,
    normalize_context,
)
from ...utils.logging import get_logger
from .schema import SCHEMA
from . import queries

logger = get_logger("clinic.store")

T = TypeVar("T")

PATIENT_FIELDS = {"name", "is_returning_patient", "notes"}


def _now() -> str:
    return _iso(datetime.now(timezone.utc))


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _new_id() -> str:
    return str(uuid.uuid4())


def _coerce_enums(obj):
    """Recursively convert Enums to raw values for JSON serialization."""
    from enum import Enum

    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _coerce_enums(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_coerce_enums(v) for v in obj]
    return obj


def _row_to_patient(row: sqlite3.Row) -> Patient:
    data = dict(row)
    data["is_returning_patient"] = bool(data["is_returning_patient"])
    return Patient(**data)


def _row_to_conversation(row: sqlite3.Row) -> Conversation:
    data = dict(row)
    data["context"] = normalize_context(json.loads(data.get("context") or "{}"))
    return Conversation(**data)


def _row_to_message(row: sqlite3.Row) -> Message:
    data = dict(row)
    data["metadata"] = json.loads(data.get("metadata") or "{}")
    return Message(**data)


class RecordStore:
    """Typed access to the clinic records over SQLite.

    Every call opens its own connection in a worker thread and is
    serialized through an ``asyncio.Lock``. SQLite failures are logged and
    reported as ``None``/``False``/``[]`` so callers never see driver errors.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self._lock = asyncio.Lock()
        self._schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.config.path, timeout=self.config.connection_timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def _run(self, work: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``work`` against a fresh connection and commit."""
        async with self._lock:
            def _execute() -> T:
                conn = self._connect()
                try:
                    if not self._schema_ready:
                        for statement in SCHEMA:
                            conn.execute(statement)
                        self._schema_ready = True
                    result = work(conn)
                    conn.commit()
                    return result
                finally:
                    conn.close()

            return await asyncio.to_thread(_execute)

    async def initialize(self) -> None:
        """Create tables ahead of the first request."""
        await self._run(lambda conn: None)

    async def ping(self) -> bool:
        """True when the database file opens and the schema is in place."""
        try:
            await self._run(lambda conn: conn.execute("SELECT 1 FROM patients LIMIT 1").fetchall())
            return True
        except sqlite3.Error as e:
            logger.error(f"store ping failed: {e}")
            return False

    # Patients

    async def get_or_create_patient(self, phone: str) -> Optional[Patient]:
        """Return the patient for ``phone``, creating it on first contact."""
        def _work(conn: sqlite3.Connection) -> Patient:
            now = _now()
            conn.execute(
                """
                INSERT OR IGNORE INTO patients
                    (id, phone, is_returning_patient, created_at, updated_at)
                VALUES (?, ?, 0, ?, ?)
                """,
                (_new_id(), phone, now, now),
            )
            row = conn.execute("SELECT * FROM patients WHERE phone = ?", (phone,)).fetchone()
            return _row_to_patient(row)

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"get_or_create_patient failed for {phone}: {e}")
            return None

    async def get_patient(self, patient_id: str) -> Optional[Patient]:
        def _work(conn: sqlite3.Connection) -> Optional[Patient]:
            row = conn.execute("SELECT * FROM patients WHERE id = ?", (patient_id,)).fetchone()
            return _row_to_patient(row) if row else None

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"get_patient failed for {patient_id}: {e}")
            return None

    async def get_patient_by_phone(self, phone: str) -> Optional[Patient]:
        def _work(conn: sqlite3.Connection) -> Optional[Patient]:
            row = conn.execute("SELECT * FROM patients WHERE phone = ?", (phone,)).fetchone()
            return _row_to_patient(row) if row else None

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"get_patient_by_phone failed for {phone}: {e}")
            return None

    async def update_patient(self, patient_id: str, **updates: Any) -> Optional[Patient]:
        """Apply profile updates (``name``, ``is_returning_patient``, ``notes``)."""
        unknown = set(updates) - PATIENT_FIELDS
        if unknown:
            raise ValueError(f"Unknown patient fields: {sorted(unknown)}")

        def _work(conn: sqlite3.Connection) -> Optional[Patient]:
            if updates:
                columns = ", ".join(f"{key} = ?" for key in updates)
                values = [int(v) if isinstance(v, bool) else v for v in updates.values()]
                conn.execute(
                    f"UPDATE patients SET {columns}, updated_at = ? WHERE id = ?",
                    (*values, _now(), patient_id),
                )
            row = conn.execute("SELECT * FROM patients WHERE id = ?", (patient_id,)).fetchone()
            return _row_to_patient(row) if row else None

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"update_patient failed for {patient_id}: {e}")
            return None

    # Conversations

    async def get_active_conversation(self, patient_id: str) -> Optional[Conversation]:
        def _work(conn: sqlite3.Connection) -> Optional[Conversation]:
            row = conn.execute(
                """
                SELECT * FROM conversations
                WHERE patient_id = ? AND status = 'active'
                ORDER BY started_at DESC LIMIT 1
                """,
                (patient_id,),
            ).fetchone()
            return _row_to_conversation(row) if row else None

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"get_active_conversation failed for {patient_id}: {e}")
            return None

    async def get_open_conversation(self, patient_id: str) -> Optional[Conversation]:
        """Most recent conversation still owned by the bot or the operator."""
        def _work(conn: sqlite3.Connection) -> Optional[Conversation]:
            row = conn.execute(
                """
                SELECT * FROM conversations
                WHERE patient_id = ? AND status IN ('active', 'handoff')
                ORDER BY started_at DESC, rowid DESC LIMIT 1
                """,
                (patient_id,),
            ).fetchone()
            return _row_to_conversation(row) if row else None

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"get_open_conversation failed for {patient_id}: {e}")
            return None

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        def _work(conn: sqlite3.Connection) -> Optional[Conversation]:
            row = conn.execute(
                "SELECT * FROM conversations WHERE id = ?", (conversation_id,)
            ).fetchone()
            return _row_to_conversation(row) if row else None

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"get_conversation failed for {conversation_id}: {e}")
            return None

    async def create_conversation(
        self,
        patient_id: str,
        current_step: str = "welcome",
        context: Optional[Dict[str, Any]] = None,
    ) -> Optional[Conversation]:
        """Open an active conversation, or return the one that already exists.

        The insert only happens when the patient has no active conversation;
        a concurrent writer that wins the race trips the partial unique index
        and the existing row is returned instead.
        """
        def _work(conn: sqlite3.Connection) -> Optional[Conversation]:
            now = _now()
            try:
                conn.execute(
                    """
                    INSERT INTO conversations
                        (id, patient_id, status, current_step, context,
                         started_at, created_at, updated_at)
                    SELECT ?, ?, 'active', ?, ?, ?, ?, ?
                    WHERE NOT EXISTS (
                        SELECT 1 FROM conversations
                        WHERE patient_id = ? AND status = 'active'
                    )
                    """,
                    (
                        _new_id(), patient_id, current_step,
                        json.dumps(_coerce_enums(context or {})),
                        now, now, now, patient_id,
                    ),
                )
            except sqlite3.IntegrityError:
                logger.info(f"active conversation already exists for {patient_id}")
            row = conn.execute(
                "SELECT * FROM conversations WHERE patient_id = ? AND status = 'active'",
                (patient_id,),
            ).fetchone()
            return _row_to_conversation(row) if row else None

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"create_conversation failed for {patient_id}: {e}")
            return None

    async def update_conversation(
        self,
        conversation_id: str,
        status: Optional[ConversationStatus] = None,
        current_step: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> Optional[Conversation]:
        """Update status, step and/or context.

        Status changes not allowed by ``ConversationStatus.can_transition_to``
        are refused and reported as ``None``.
        """
        def _work(conn: sqlite3.Connection) -> Optional[Conversation]:
            row = conn.execute(
                "SELECT * FROM conversations WHERE id = ?", (conversation_id,)
            ).fetchone()
            if row is None:
                return None
            current = _row_to_conversation(row)

            assignments: List[str] = []
            values: List[Any] = []
            if status is not None and status != current.status:
                if not current.status.can_transition_to(status):
                    logger.warning(
                        f"refused conversation transition {current.status.value} -> "
                        f"{status.value} for {conversation_id}"
                    )
                    return None
                assignments.append("status = ?")
                values.append(status.value)
                if status == ConversationStatus.COMPLETED:
                    assignments.append("ended_at = ?")
                    values.append(_now())
            if current_step is not None:
                assignments.append("current_step = ?")
                values.append(current_step)
            if context is not None:
                assignments.append("context = ?")
                values.append(json.dumps(_coerce_enums(context)))

            if assignments:
                assignments.append("updated_at = ?")
                values.append(_now())
                conn.execute(
                    f"UPDATE conversations SET {', '.join(assignments)} WHERE id = ?",
                    (*values, conversation_id),
                )
            row = conn.execute(
                "SELECT * FROM conversations WHERE id = ?", (conversation_id,)
            ).fetchone()
            return _row_to_conversation(row)

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"update_conversation failed for {conversation_id}: {e}")
            return None

    # Messages

    async def save_message(
        self,
        conversation_id: str,
        direction: MessageDirection,
        content: str,
        message_type: str = "text",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Message]:
        """Append an immutable message row."""
        def _work(conn: sqlite3.Connection) -> Message:
            message_id = _new_id()
            conn.execute(
                """
                INSERT INTO messages
                    (id, conversation_id, direction, content, message_type, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    message_id, conversation_id, MessageDirection(direction).value,
                    content, message_type, json.dumps(_coerce_enums(metadata or {})), _now(),
                ),
            )
            row = conn.execute("SELECT * FROM messages WHERE id = ?", (message_id,)).fetchone()
            return _row_to_message(row)

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"save_message failed for {conversation_id}: {e}")
            return None

    async def list_messages(self, conversation_id: str) -> List[Message]:
        """Messages of a conversation, oldest first."""
        def _work(conn: sqlite3.Connection) -> List[Message]:
            rows = conn.execute(
                """
                SELECT * FROM messages WHERE conversation_id = ?
                ORDER BY created_at ASC, rowid ASC
                """,
                (conversation_id,),
            ).fetchall()
            return [_row_to_message(row) for row in rows]

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"list_messages failed for {conversation_id}: {e}")
            return []

    # Handoffs

    async def create_handoff(
        self,
        conversation_id: str,
        patient_id: str,
        reason: str,
        summary: Optional[str] = None,
    ) -> Optional[Handoff]:
        def _work(conn: sqlite3.Connection) -> Handoff:
            handoff_id = _new_id()
            conn.execute(
                """
                INSERT INTO handoffs
                    (id, conversation_id, patient_id, reason, summary, status, created_at)
                VALUES (?, ?, ?, ?, ?, 'pending', ?)
                """,
                (handoff_id, conversation_id, patient_id, _coerce_enums(reason), summary, _now()),
            )
            row = conn.execute("SELECT * FROM handoffs WHERE id = ?", (handoff_id,)).fetchone()
            return Handoff(**dict(row))

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"create_handoff failed for {conversation_id}: {e}")
            return None

    async def get_handoff(self, handoff_id: str) -> Optional[Handoff]:
        def _work(conn: sqlite3.Connection) -> Optional[Handoff]:
            row = conn.execute("SELECT * FROM handoffs WHERE id = ?", (handoff_id,)).fetchone()
            return Handoff(**dict(row)) if row else None

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"get_handoff failed for {handoff_id}: {e}")
            return None

    async def update_handoff_status(
        self,
        handoff_id: str,
        status: HandoffStatus,
        handled_by: Optional[str] = None,
    ) -> Optional[Handoff]:
        """Move a handoff forward; ``completed`` stamps ``handled_at``."""
        def _work(conn: sqlite3.Connection) -> Optional[Handoff]:
            if status == HandoffStatus.COMPLETED:
                conn.execute(
                    "UPDATE handoffs SET status = ?, handled_at = ?, handled_by = ? WHERE id = ?",
                    (status.value, _now(), handled_by, handoff_id),
                )
            else:
                conn.execute(
                    "UPDATE handoffs SET status = ? WHERE id = ?",
                    (status.value, handoff_id),
                )
            row = conn.execute("SELECT * FROM handoffs WHERE id = ?", (handoff_id,)).fetchone()
            return Handoff(**dict(row)) if row else None

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"update_handoff_status failed for {handoff_id}: {e}")
            return None

    # Appointments

    async def create_appointment(self, data: AppointmentCreate) -> Optional[Appointment]:
        """Record a manually scheduled appointment with status ``pending``."""
        def _work(conn: sqlite3.Connection) -> Appointment:
            appointment_id = _new_id()
            now = _now()
            conn.execute(
                """
                INSERT INTO appointments
                    (id, patient_id, conversation_id, doctor, appointment_type,
                     appointment_date, status, preferred_period, notes,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, 'pending', ?, ?, ?, ?)
                """,
                (
                    appointment_id, data.patient_id, data.conversation_id,
                    data.doctor.value, data.appointment_type.value, data.appointment_date,
                    data.preferred_period, data.notes, now, now,
                ),
            )
            row = conn.execute(
                "SELECT * FROM appointments WHERE id = ?", (appointment_id,)
            ).fetchone()
            return Appointment(**dict(row))

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"create_appointment failed for {data.patient_id}: {e}")
            return None

    async def list_patient_appointments(self, patient_id: str) -> List[Appointment]:
        def _work(conn: sqlite3.Connection) -> List[Appointment]:
            rows = conn.execute(
                """
                SELECT * FROM appointments WHERE patient_id = ?
                ORDER BY appointment_date ASC, rowid ASC
                """,
                (patient_id,),
            ).fetchall()
            return [Appointment(**dict(row)) for row in rows]

        try:
            return await self._run(_work)
        except sqlite3.Error as e:
            logger.error(f"list_patient_appointments failed for {patient_id}: {e}")
            return []

    # Admin projections

    async def list_conversations(self, limit: int = 50) -> List[ConversationWithPatient]:
        try:
            return await self._run(lambda conn: queries.fetch_conversations(conn, limit))
        except sqlite3.Error as e:
            logger.error(f"list_conversations failed: {e}")
            return []

    async def list_appointments(self, limit: int = 50) -> List[AppointmentWithPatient]:
        try:
            return await self._run(lambda conn: queries.fetch_appointments(conn, limit))
        except sqlite3.Error as e:
            logger.error(f"list_appointments failed: {e}")
            return []

    async def list_handoffs(self, limit: int = 50) -> List[HandoffWithDetails]:
        try:
            return await self._run(lambda conn: queries.fetch_handoffs(conn, limit))
        except sqlite3.Error as e:
            logger.error(f"list_handoffs failed: {e}")
            return []

    async def dashboard_metrics(
        self,
        day_start: datetime,
        now: Optional[datetime] = None,
        upcoming_days: int = 7,
    ) -> DashboardMetrics:
        """Counters since ``day_start`` plus appointments in the next ``upcoming_days``."""
        now = now or datetime.now(timezone.utc)
        bounds = (_iso(day_start), _iso(now), _iso(now + timedelta(days=upcoming_days)))
        try:
            return await self._run(lambda conn: queries.fetch_dashboard_metrics(conn, *bounds))
        except sqlite3.Error as e:
            logger.error(f"dashboard_metrics failed: {e}")
            return DashboardMetrics()
