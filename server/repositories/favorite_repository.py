"""Favorite repository for database operations."""

from datetime import datetime

from server.database import get_db_connection


class FavoriteRepository:
    @staticmethod
    def exists(user_id: str, file_id: str) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM favorites WHERE user_id = ? AND file_id = ?",
                (user_id, file_id)
            )
            return cursor.fetchone() is not None

    @staticmethod
    def add(user_id: str, file_id: str, created_at: datetime) -> None:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO favorites (user_id, file_id, created_at) VALUES (?, ?, ?)",
                (user_id, file_id, created_at.isoformat())
            )
            conn.commit()

    @staticmethod
    def remove(user_id: str, file_id: str) -> None:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM favorites WHERE user_id = ? AND file_id = ?",
                (user_id, file_id)
            )
            conn.commit()

    @staticmethod
    def count_for_user(user_id: str) -> int:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) AS count FROM favorites WHERE user_id = ?",
                (user_id,)
            )
            return cursor.fetchone()["count"]
