"""
Per-user chat history.

One ChatSession row per user, created lazily on the first query. Messages are
append-only; only the trailing window is ever handed to the classifier.
"""
from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from hrchat.data.models import ChatMessage, ChatSession
from hrchat.utils.logger import get_logger

logger = get_logger("history.session_history")

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"

# History API names the assistant "bot"
_SENDER = {ROLE_USER: "user", ROLE_ASSISTANT: "bot"}


class SessionHistoryManager:
    def __init__(self, session_factory: sessionmaker, context_window: int = 10):
        self._session_factory = session_factory
        self.context_window_size = context_window

    def get_or_create(self, user_id: str) -> ChatSession:
        """Load the user's session, creating it on first use."""
        with self._session_factory() as db:
            chat = db.scalars(select(ChatSession).where(ChatSession.user_id == user_id)).first()
            if chat is not None:
                return chat
            now = datetime.now(timezone.utc)
            chat = ChatSession(user_id=user_id, created_at=now, updated_at=now)
            db.add(chat)
            try:
                db.commit()
            except IntegrityError:
                # A concurrent request for the same user created it first
                db.rollback()
                return db.scalars(select(ChatSession).where(ChatSession.user_id == user_id)).one()
            logger.info(f"Created chat session for {user_id}")
            return chat

    def context_window(self, chat: ChatSession) -> List[Dict[str, str]]:
        """
        Trailing messages for the classifier, oldest first.

        The window is the last N stored messages; system messages inside it are
        then dropped, so the result can be shorter than N.
        """
        with self._session_factory() as db:
            rows = db.scalars(
                select(ChatMessage)
                .where(ChatMessage.session_id == chat.id)
                .order_by(ChatMessage.id.desc())
                .limit(self.context_window_size)
            ).all()
        return [
            {"role": row.role, "content": row.content}
            for row in reversed(rows)
            if row.role in (ROLE_USER, ROLE_ASSISTANT)
        ]

    def append(self, chat: ChatSession, user_query: str, final_message: str) -> None:
        """Record one user turn and one assistant turn in a single transaction."""
        now = datetime.now(timezone.utc)
        with self._session_factory() as db:
            with db.begin():
                db.add_all([
                    ChatMessage(session_id=chat.id, role=ROLE_USER, content=user_query, timestamp=now),
                    ChatMessage(session_id=chat.id, role=ROLE_ASSISTANT, content=final_message, timestamp=now),
                ])
                db.execute(update(ChatSession).where(ChatSession.id == chat.id).values(updated_at=now))

    def history_messages(self, user_id: str) -> List[Dict[str, str]]:
        """Full visible history for the history API; [] when the user never chatted."""
        with self._session_factory() as db:
            rows = db.scalars(
                select(ChatMessage)
                .join(ChatSession, ChatMessage.session_id == ChatSession.id)
                .where(ChatSession.user_id == user_id, ChatMessage.role != ROLE_SYSTEM)
                .order_by(ChatMessage.id)
            ).all()
        return [{"id": str(row.id), "text": row.content, "sender": _SENDER[row.role]} for row in rows]

    def message_count(self, chat: ChatSession) -> int:
        with self._session_factory() as db:
            return db.scalar(select(func.count(ChatMessage.id)).where(ChatMessage.session_id == chat.id))
