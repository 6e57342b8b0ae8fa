"""
SQLAlchemy database models.

- Employee: HR records, owned by the user who created them (created_by)
- ChatSession / ChatMessage: per-user chat history, append-only
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from hrchat.data.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    position = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True, index=True)
    salary = Column(Numeric(12, 2, asdecimal=False), nullable=True)

    # Username of the owner; non-admins only see their own rows
    created_by = Column(String(255), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    def to_ref(self) -> Dict[str, Any]:
        """Projection used by the chat engine (EmployeeRef)."""
        return {
            "id": str(self.id),
            "name": self.name,
            "position": self.position,
            "department": self.department,
            "salary": float(self.salary) if self.salary is not None else None,
            "createdBy": self.created_by,
        }


# API field name -> Employee column, used to compile Filter trees
EMPLOYEE_COLUMNS = {
    "id": Employee.id,
    "name": Employee.name,
    "position": Employee.position,
    "department": Employee.department,
    "salary": Employee.salary,
    "createdBy": Employee.created_by,
}


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    messages = relationship(
        "ChatMessage",
        back_populates="session",
        order_by="ChatMessage.id",
        cascade="all, delete-orphan",
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("chat_sessions.id"), nullable=False, index=True)
    role = Column(String(16), nullable=False)  # user | assistant | system
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow)

    session = relationship("ChatSession", back_populates="messages")
