"""Subscription repository: (user, subject, category) -> channel rows."""

from dataclasses import dataclass
from datetime import datetime
from typing import List

from common.identifiers import normalize
from common.logging_config import get_logger
from server.database import get_db_connection

logger = get_logger(__name__)


@dataclass
class SubscriptionEntry:
    user_id: str
    subject: str
    category: str
    location_id: int


class SubscriptionRepository:
    @staticmethod
    def upsert(entry: SubscriptionEntry, created_at: datetime, conn=None) -> bool:
        """
        Insert the entry unless (user, subject, category) already exists.

        When a connection is passed the caller owns the transaction.

        Returns:
            True if a row was inserted, False if the caller was already subscribed
        """
        if conn is not None:
            return SubscriptionRepository._upsert(conn, entry, created_at)

        with get_db_connection() as conn:
            inserted = SubscriptionRepository._upsert(conn, entry, created_at)
            conn.commit()
            return inserted

    @staticmethod
    def _upsert(conn, entry: SubscriptionEntry, created_at: datetime) -> bool:
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT OR IGNORE INTO subscriptions (user_id, subject, category, location_id, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (entry.user_id, entry.subject, entry.category, normalize(entry.location_id), created_at.isoformat())
        )
        return cursor.rowcount > 0

    @staticmethod
    def find_by_user(user_id: str) -> List[SubscriptionEntry]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT user_id, subject, category, location_id
                FROM subscriptions WHERE user_id = ?
                ORDER BY subject, category
                """,
                (user_id,)
            )
            return [
                SubscriptionEntry(
                    user_id=row["user_id"],
                    subject=row["subject"],
                    category=row["category"],
                    location_id=normalize(row["location_id"]),
                )
                for row in cursor.fetchall()
            ]

    @staticmethod
    def find_subjects_with_category(user_id: str, category: str) -> List[str]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT DISTINCT subject FROM subscriptions
                WHERE user_id = ? AND category = ?
                ORDER BY subject
                """,
                (user_id, category)
            )
            return [row["subject"] for row in cursor.fetchall()]

    @staticmethod
    def delete_by_subject(user_id: str, subject: str, conn=None) -> int:
        if conn is not None:
            return SubscriptionRepository._delete_by_subject(conn, user_id, subject)

        with get_db_connection() as conn:
            deleted = SubscriptionRepository._delete_by_subject(conn, user_id, subject)
            conn.commit()
            return deleted

    @staticmethod
    def _delete_by_subject(conn, user_id: str, subject: str) -> int:
        cursor = conn.cursor()
        cursor.execute(
            "DELETE FROM subscriptions WHERE user_id = ? AND subject = ?",
            (user_id, subject)
        )
        deleted = cursor.rowcount
        logger.debug(f"Deleted {deleted} subscription rows for subject '{subject}' [user_id={user_id}]")
        return deleted
