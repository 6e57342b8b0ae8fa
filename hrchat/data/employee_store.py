"""
Employee persistence used by the chat engine.

All reads go through fetch_snapshot with a role-scope Filter; mutations are
by primary key only. Records leave this module as EmployeeRef dicts (id as
a string, API field names).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from hrchat.data.models import EMPLOYEE_COLUMNS, Employee, utcnow
from hrchat.parsing.filters import Filter, MatchAll
from hrchat.utils.logger import get_logger

logger = get_logger("data.employee_store")

# API name -> model attribute, for writes
_WRITE_ATTRS = {
    "name": "name",
    "position": "position",
    "department": "department",
    "salary": "salary",
    "createdBy": "created_by",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def _parse_id(employee_id: Any) -> Optional[int]:
    try:
        return int(str(employee_id))
    except (TypeError, ValueError):
        return None


class EmployeeStore:
    """Scoped reads and id-based writes over the employees table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def fetch_snapshot(self, scope: Optional[Filter] = None) -> List[Dict[str, Any]]:
        """Return every record matching scope, ordered by id."""
        stmt = select(Employee)
        if scope is not None and not isinstance(scope, MatchAll):
            stmt = stmt.where(scope.to_clause(EMPLOYEE_COLUMNS))
        stmt = stmt.order_by(Employee.id)
        with self._session_factory() as session:
            return [row.to_ref() for row in session.scalars(stmt)]

    def find_one(self, employee_id: Any) -> Optional[Dict[str, Any]]:
        pk = _parse_id(employee_id)
        if pk is None:
            return None
        with self._session_factory() as session:
            row = session.get(Employee, pk)
            return row.to_ref() if row else None

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record; data uses API names (createdBy, createdAt, ...)."""
        employee = Employee(**self._attrs(data))
        with self._session_factory() as session:
            session.add(employee)
            session.commit()
            session.refresh(employee)
            logger.info(f"Inserted employee {employee.id} ({employee.name}) for {employee.created_by}")
            return employee.to_ref()

    def update(self, employee_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply fields to one record. Returns the updated record, or None if it is gone."""
        pk = _parse_id(employee_id)
        if pk is None:
            return None
        with self._session_factory() as session:
            employee = session.get(Employee, pk)
            if employee is None:
                return None
            for attr, value in self._attrs(fields).items():
                setattr(employee, attr, value)
            session.commit()
            session.refresh(employee)
            logger.info(f"Updated employee {pk}: {sorted(fields)}")
            return employee.to_ref()

    def delete(self, employee_id: Any) -> bool:
        pk = _parse_id(employee_id)
        if pk is None:
            return False
        with self._session_factory() as session:
            employee = session.get(Employee, pk)
            if employee is None:
                return False
            session.delete(employee)
            session.commit()
            logger.info(f"Deleted employee {pk}")
            return True

    @staticmethod
    def _attrs(data: Dict[str, Any]) -> Dict[str, Any]:
        attrs = {}
        for key, value in data.items():
            attr = _WRITE_ATTRS.get(key)
            if attr is None:
                continue
            if attr in ("created_at", "updated_at") and not isinstance(value, datetime):
                value = utcnow()
            attrs[attr] = value
        return attrs
