"""
Action dispatcher: executes a validated Intent for one request.

Every id the dispatcher acts on is looked up in the request's authorized
snapshot first; a target outside it gets a neutral message and the store is
never touched. After a mutation, cache keys are invalidated before the live
broadcast so clients that refetch on the event never read stale data.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from hrchat.cache.cache import EMPLOYEE_LIST_PATTERN, employee_key
from hrchat.core.intents import (
    CreateIntent,
    DeleteIntent,
    QueryIntent,
    Requester,
    UpdateIntent,
    sanitize_employee_fields,
)
from hrchat.utils.logger import get_logger

logger = get_logger("actions.dispatcher")

ACTION_QUERY = "QUERY"
ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"

NOT_FOUND_MESSAGE = "Employee not found or access denied."
MISSING_UPDATE_TARGET_MESSAGE = "I couldn't find exactly which employee to update."
MISSING_DELETE_TARGET_MESSAGE = "I couldn't identify who to delete."
MISSING_NAME_MESSAGE = "I need at least a name to create an employee."


@dataclass
class DispatchResult:
    """What the request answers with. action is None when nothing was executed."""
    message: str
    results: List[Dict[str, Any]] = field(default_factory=list)
    action: Optional[str] = None


class ActionDispatcher:
    """
    Args:
        store: EmployeeStore (insert / update / delete by id)
        cache: CacheClient (delete / delete_pattern)
        broadcaster: Broadcaster (emit)
        notifier: AdminNotifier, optional
    """

    def __init__(self, store, cache, broadcaster, notifier=None):
        self.store = store
        self.cache = cache
        self.broadcaster = broadcaster
        self.notifier = notifier

    def dispatch(self, intent, snapshot: List[Dict[str, Any]], requester: Requester) -> DispatchResult:
        if isinstance(intent, CreateIntent):
            return self._create(intent, requester)
        if isinstance(intent, UpdateIntent):
            return self._update(intent, snapshot, requester)
        if isinstance(intent, DeleteIntent):
            return self._delete(intent, snapshot, requester)
        if isinstance(intent, QueryIntent):
            return self._query(intent, snapshot)
        raise TypeError(f"Unsupported intent type: {type(intent).__name__}")

    def _query(self, intent: QueryIntent, snapshot: List[Dict[str, Any]]) -> DispatchResult:
        # Ids the snapshot doesn't contain simply select nothing
        wanted = set(intent.matching_ids)
        results = [record for record in snapshot if record["id"] in wanted]
        return DispatchResult(message=intent.message, results=results, action=ACTION_QUERY)

    def _create(self, intent: CreateIntent, requester: Requester) -> DispatchResult:
        data = sanitize_employee_fields(intent.data)
        if not data.get("name"):
            logger.info(f"Create from {requester.username} rejected: no name in {sorted(intent.data)}")
            return DispatchResult(message=MISSING_NAME_MESSAGE)

        now = datetime.now(timezone.utc)
        record = self.store.insert({**data, "createdBy": requester.username, "createdAt": now, "updatedAt": now})
        logger.info(f"{requester.username} created employee {record['id']} ({record['name']})")

        self._invalidate()
        self._announce(ACTION_CREATE, requester, record)
        return DispatchResult(message=f"Successfully created employee: {record['name']}", action=ACTION_CREATE)

    def _update(self, intent: UpdateIntent, snapshot: List[Dict[str, Any]], requester: Requester) -> DispatchResult:
        if not intent.target_id:
            return DispatchResult(message=MISSING_UPDATE_TARGET_MESSAGE)

        target = self._authorized_target(intent.target_id, snapshot, requester, "update")
        if target is None:
            return DispatchResult(message=NOT_FOUND_MESSAGE)

        fields = sanitize_employee_fields(intent.fields)
        updated = self.store.update(target["id"], {**fields, "updatedAt": datetime.now(timezone.utc)})
        if updated is None:
            # Removed between snapshot and write
            logger.warning(f"Employee {target['id']} vanished before update by {requester.username}")
            return DispatchResult(message=NOT_FOUND_MESSAGE)
        logger.info(f"{requester.username} updated employee {target['id']}: {sorted(fields)}")

        self._invalidate(target["id"])
        self._announce(ACTION_UPDATE, requester, updated)
        return DispatchResult(message=f"Updated details for {target['name']}.", action=ACTION_UPDATE)

    def _delete(self, intent: DeleteIntent, snapshot: List[Dict[str, Any]], requester: Requester) -> DispatchResult:
        if not intent.target_id:
            return DispatchResult(message=MISSING_DELETE_TARGET_MESSAGE)

        target = self._authorized_target(intent.target_id, snapshot, requester, "delete")
        if target is None:
            return DispatchResult(message=NOT_FOUND_MESSAGE)

        self.store.delete(target["id"])
        logger.info(f"{requester.username} deleted employee {target['id']} ({target['name']})")

        self._invalidate(target["id"])
        self._announce(ACTION_DELETE, requester, target)
        return DispatchResult(message=f"Deleted employee: {target['name']}", action=ACTION_DELETE)

    @staticmethod
    def _authorized_target(target_id: str, snapshot: List[Dict[str, Any]], requester: Requester,
                           verb: str) -> Optional[Dict[str, Any]]:
        for record in snapshot:
            if record["id"] == target_id:
                return record
        logger.warning(f"{requester.username} tried to {verb} employee {target_id!r} outside their snapshot")
        return None

    def _invalidate(self, employee_id: Optional[str] = None) -> None:
        """Point key (if any) then list keys. Best-effort, each delete on its own."""
        if employee_id is not None:
            try:
                self.cache.delete(employee_key(employee_id))
            except Exception as e:
                logger.error(f"Cache invalidation of employee {employee_id} failed: {e}")
        try:
            self.cache.delete_pattern(EMPLOYEE_LIST_PATTERN)
        except Exception as e:
            logger.error(f"Cache invalidation of employee lists failed: {e}")

    def _announce(self, action: str, requester: Requester, record: Dict[str, Any]) -> None:
        """Broadcast the change and notify admins. Best-effort."""
        try:
            self.broadcaster.emit(action)
        except Exception as e:
            logger.error(f"Broadcast of {action} failed: {e}")
        if self.notifier is not None:
            try:
                self.notifier.notify(requester, action, record)
            except Exception as e:
                logger.error(f"Admin notification for {action} failed: {e}")
