"""Reporting bad cards and questions, and moderating the reports."""
import logging
from datetime import datetime

from studydeck.db import get_connection
from studydeck.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Report type -> table holding the reported item
REPORTABLE = {
    "flash_card": "cards",
    "exam_question": "questions",
}
BUG_REPORT = "bug"


def _insert_report(conn, reporter_user_id, reporter_name, report_type, item_id, description) -> int:
    cur = conn.execute(
        """INSERT INTO reports (reporter_user_id, reporter_name, report_type, reported_item_id, description, created_at)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (reporter_user_id, reporter_name, report_type, item_id, description, datetime.now().isoformat()),
    )
    return cur.lastrowid


def report_item(
    db_path: str,
    report_type: str,
    item_id: int,
    reporter_user_id: str,
    reporter_name: str,
    description: str = "",
) -> int:
    """File a report and hide the item until a moderator restores or deletes it."""
    if report_type not in REPORTABLE:
        raise ValidationError(f"Unknown report type: {report_type}")
    if not reporter_user_id or not reporter_name:
        raise ValidationError("Missing reporter information")
    table = REPORTABLE[report_type]
    conn = get_connection(db_path)
    item = conn.execute(f"SELECT id, is_hidden FROM {table} WHERE id = ?", (item_id,)).fetchone()
    if item is None:
        conn.close()
        raise NotFoundError(f"{report_type} {item_id} not found")
    if item["is_hidden"]:
        conn.close()
        raise ValidationError(f"{report_type} {item_id} is already hidden")
    report_id = _insert_report(conn, reporter_user_id, reporter_name, report_type, item_id, description)
    conn.execute(
        f"UPDATE {table} SET is_hidden = 1, updated_at = ? WHERE id = ?",
        (datetime.now().isoformat(), item_id),
    )
    conn.commit()
    conn.close()
    logger.info("Report %d hid %s %d", report_id, report_type, item_id)
    return report_id


def report_bug(db_path: str, reporter_user_id: str, reporter_name: str, description: str) -> int:
    if not description or not description.strip():
        raise ValidationError("Bug description is required")
    conn = get_connection(db_path)
    report_id = _insert_report(conn, reporter_user_id, reporter_name, BUG_REPORT, None, description.strip())
    conn.commit()
    conn.close()
    return report_id


def list_reports(db_path: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM reports ORDER BY created_at DESC, id DESC").fetchall()
    conn.close()
    return [dict(r) for r in rows]


def _get_item_report(conn, report_id: int):
    report = conn.execute("SELECT * FROM reports WHERE id = ?", (report_id,)).fetchone()
    if report is None:
        raise NotFoundError(f"Report {report_id} not found")
    if report["report_type"] not in REPORTABLE:
        raise ValidationError(f"Report {report_id} is not about a card or question")
    if report["reported_item_id"] is None:
        raise ValidationError(f"Report {report_id} has no reported item")
    return report


def restore_report(db_path: str, report_id: int) -> None:
    """Un-hide the reported item and drop the report."""
    conn = get_connection(db_path)
    try:
        report = _get_item_report(conn, report_id)
        table = REPORTABLE[report["report_type"]]
        conn.execute(
            f"UPDATE {table} SET is_hidden = 0, updated_at = ? WHERE id = ?",
            (datetime.now().isoformat(), report["reported_item_id"]),
        )
        conn.execute("DELETE FROM reports WHERE id = ?", (report_id,))
        conn.commit()
    finally:
        conn.close()
    logger.info("Restored item from report %d", report_id)


def delete_reported_item(db_path: str, report_id: int) -> None:
    """Delete the reported item for good, along with the report."""
    conn = get_connection(db_path)
    try:
        report = _get_item_report(conn, report_id)
        table = REPORTABLE[report["report_type"]]
        conn.execute(f"DELETE FROM {table} WHERE id = ?", (report["reported_item_id"],))
        conn.execute("DELETE FROM reports WHERE id = ?", (report_id,))
        conn.commit()
    finally:
        conn.close()
    logger.info("Deleted item from report %d", report_id)
