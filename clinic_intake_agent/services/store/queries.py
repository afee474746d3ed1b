"""
Admin read projections over the record store.

Each function takes an open ``sqlite3.Connection`` and is executed by
:class:`RecordStore` inside its worker thread.
"""

import json
import sqlite3
from typing import List

from ...core.models import (
    AppointmentWithPatient,
    ConversationWithPatient,
    DashboardMetrics,
    HandoffWithDetails,
    normalize_context,
)


def fetch_conversations(conn: sqlite3.Connection, limit: int) -> List[ConversationWithPatient]:
    rows = conn.execute(
        """
        SELECT c.*, p.name AS patient_name, p.phone AS patient_phone
        FROM conversations c
        JOIN patients p ON p.id = c.patient_id
        ORDER BY c.started_at DESC, c.rowid DESC
        LIMIT ?
        """,
        (limit,),
    ).fetchall()
    return [
        ConversationWithPatient(
            id=row["id"],
            patient_id=row["patient_id"],
            patient_name=row["patient_name"],
            patient_phone=row["patient_phone"],
            started_at=row["started_at"],
            ended_at=row["ended_at"],
            status=row["status"],
            current_step=row["current_step"],
            context=normalize_context(json.loads(row["context"] or "{}")),
        )
        for row in rows
    ]


def fetch_appointments(conn: sqlite3.Connection, limit: int) -> List[AppointmentWithPatient]:
    rows = conn.execute(
        """
        SELECT a.*, p.name AS patient_name, p.phone AS patient_phone
        FROM appointments a
        JOIN patients p ON p.id = a.patient_id
        ORDER BY a.appointment_date DESC, a.rowid DESC
        LIMIT ?
        """,
        (limit,),
    ).fetchall()
    return [
        AppointmentWithPatient(
            id=row["id"],
            patient_id=row["patient_id"],
            patient_name=row["patient_name"],
            patient_phone=row["patient_phone"],
            doctor=row["doctor"],
            appointment_type=row["appointment_type"],
            appointment_date=row["appointment_date"],
            status=row["status"],
            preferred_period=row["preferred_period"],
            notes=row["notes"],
            created_at=row["created_at"],
        )
        for row in rows
    ]


def fetch_handoffs(conn: sqlite3.Connection, limit: int) -> List[HandoffWithDetails]:
    rows = conn.execute(
        """
        SELECT h.*, p.name AS patient_name, p.phone AS patient_phone
        FROM handoffs h
        JOIN patients p ON p.id = h.patient_id
        ORDER BY h.created_at DESC, h.rowid DESC
        LIMIT ?
        """,
        (limit,),
    ).fetchall()
    return [
        HandoffWithDetails(
            id=row["id"],
            conversation_id=row["conversation_id"],
            patient_id=row["patient_id"],
            patient_name=row["patient_name"],
            patient_phone=row["patient_phone"],
            reason=row["reason"],
            summary=row["summary"],
            status=row["status"],
            created_at=row["created_at"],
            handled_at=row["handled_at"],
        )
        for row in rows
    ]


def fetch_dashboard_metrics(
    conn: sqlite3.Connection,
    day_start: str,
    now: str,
    upcoming_end: str,
) -> DashboardMetrics:
    """All bounds are ISO timestamps comparable with the stored values."""

    def _count(sql: str, params: tuple) -> int:
        return conn.execute(sql, params).fetchone()[0]

    return DashboardMetrics(
        total_conversations_today=_count(
            "SELECT COUNT(*) FROM conversations WHERE started_at >= ?", (day_start,)
        ),
        total_handoffs_today=_count(
            "SELECT COUNT(*) FROM handoffs WHERE created_at >= ?", (day_start,)
        ),
        total_appointments_today=_count(
            "SELECT COUNT(*) FROM appointments WHERE created_at >= ?", (day_start,)
        ),
        pending_handoffs=_count(
            "SELECT COUNT(*) FROM handoffs WHERE status = 'pending'", ()
        ),
        upcoming_appointments=_count(
            """
            SELECT COUNT(*) FROM appointments
            WHERE appointment_date >= ? AND appointment_date <= ?
              AND status IN ('pending', 'confirmed')
            """,
            (now, upcoming_end),
        ),
    )
