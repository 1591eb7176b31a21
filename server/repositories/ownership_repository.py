"""File ownership repository: which caller uploaded which channel message."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from common.identifiers import normalize
from common.logging_config import get_logger
from server.database import get_db_connection

logger = get_logger(__name__)


@dataclass
class FileOwnership:
    location_id: int
    message_id: int
    user_id: str
    subject: str
    category: str
    file_name: str
    created_at: datetime

    @property
    def file_id(self) -> str:
        return f"{self.subject}-{self.category}-{self.message_id}"


def _row_to_ownership(row) -> FileOwnership:
    return FileOwnership(
        location_id=normalize(row["location_id"]),
        message_id=row["message_id"],
        user_id=row["user_id"],
        subject=row["subject"],
        category=row["category"],
        file_name=row["file_name"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class OwnershipRepository:
    @staticmethod
    def create(ownership: FileOwnership) -> FileOwnership:
        logger.debug(
            f"Recording ownership of message {ownership.message_id} in {ownership.location_id} "
            f"[user_id={ownership.user_id}]"
        )
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO file_ownership
                    (location_id, message_id, user_id, subject, category, file_name, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    normalize(ownership.location_id),
                    ownership.message_id,
                    ownership.user_id,
                    ownership.subject,
                    ownership.category,
                    ownership.file_name,
                    ownership.created_at.isoformat(),
                )
            )
            conn.commit()
        return ownership

    @staticmethod
    def find_by_location(user_id: str, location_id: int) -> List[FileOwnership]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM file_ownership
                WHERE user_id = ? AND location_id = ?
                ORDER BY message_id DESC
                """,
                (user_id, normalize(location_id))
            )
            return [_row_to_ownership(row) for row in cursor.fetchall()]

    @staticmethod
    def get(user_id: str, subject: str, category: str, message_id: int) -> Optional[FileOwnership]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM file_ownership
                WHERE user_id = ? AND subject = ? AND category = ? AND message_id = ?
                """,
                (user_id, subject, category, message_id)
            )
            row = cursor.fetchone()
            return _row_to_ownership(row) if row else None

    @staticmethod
    def delete_by_subject(user_id: str, subject: str, conn=None) -> int:
        if conn is not None:
            return OwnershipRepository._delete_by_subject(conn, user_id, subject)

        with get_db_connection() as conn:
            deleted = OwnershipRepository._delete_by_subject(conn, user_id, subject)
            conn.commit()
            return deleted

    @staticmethod
    def _delete_by_subject(conn, user_id: str, subject: str) -> int:
        cursor = conn.cursor()
        cursor.execute(
            "DELETE FROM file_ownership WHERE user_id = ? AND subject = ?",
            (user_id, subject)
        )
        return cursor.rowcount
