"""Optimistic status updates for issue lists."""
import logging

from .db_service import DatabaseService
from .errors import RemoteOperationError
from .models import UpdateOutcome
from .store import ViewStore, replace_field

logger = logging.getLogger(__name__)


class OptimisticUpdateController:
    """Apply a status change locally, send it, then resync.

    The local change is visible to subscribers before the remote request is
    sent. The refetch always runs, so a rejected update is reverted by the
    authoritative data; the error is logged and returned in the outcome.
    Concurrent edits from other clients resolve as last refetch wins.
    """

    def __init__(self, store: ViewStore, db_service: DatabaseService):
        self.store = store
        self.db = db_service

    async def update_status(self, issue_id: int, status: str) -> UpdateOutcome:
        self.store.apply(lambda issues: replace_field(issues or [], issue_id, "status", status))

        error = None
        try:
            await self.db.update_issue_status(issue_id, status)
        except RemoteOperationError as e:
            logger.error(f"Failed to update status of issue {issue_id} to {status}: {e}")
            error = f"Failed to update status: {e.message}"

        issues = await self.store.refresh()
        return UpdateOutcome(issue_id=issue_id, status=status, error=error, issues=issues or [])
