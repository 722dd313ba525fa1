"""In-memory guard against repeat community votes."""
from collections import defaultdict
from typing import Dict


class VoteGuard:
    """Remembers which issues each user voted on during this process.

    The verifications table does not deduplicate, so this only stops a
    second vote from the same user while the service stays up.
    """

    def __init__(self):
        self._votes: Dict[str, Dict[int, str]] = defaultdict(dict)

    def record(self, user_id: str, issue_id: int, is_dispute: bool) -> bool:
        """Record a vote; False if the user already voted on the issue."""
        if issue_id in self._votes[user_id]:
            return False
        self._votes[user_id][issue_id] = "dispute" if is_dispute else "verify"
        return True

    def forget(self, user_id: str, issue_id: int) -> None:
        self._votes[user_id].pop(issue_id, None)

    def votes_of(self, user_id: str) -> Dict[int, str]:
        return dict(self._votes[user_id])
