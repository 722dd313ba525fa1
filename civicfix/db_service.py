"""Database and storage operations using the Supabase client."""
from typing import List, Dict, Any, Optional
from supabase import Client
import logging

from .errors import RemoteOperationError
from .models import IssueCreate, IssueStatus

logger = logging.getLogger(__name__)


class DatabaseService:
    """Service for issue, profile, verification and badge queries."""

    def __init__(self, client: Client, bucket: str = "issue-images"):
        """Initialize with a shared Supabase client."""
        self.client = client
        self.bucket = bucket

    # ============= Issues =============

    async def list_issues(
        self,
        submitted_by: Optional[str] = None,
        exclude_status: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Get issues, newest first.

        Args:
            submitted_by: Only issues created by this user
            exclude_status: Drop issues with this status (e.g. 'Resolved')
            limit: Maximum number of rows

        Returns:
            List of issue rows, empty on failure
        """
        try:
            query = self.client.table('issues').select('*')

            if submitted_by:
                query = query.eq('submitted_by', submitted_by)

            if exclude_status:
                query = query.neq('status', exclude_status)

            query = query.order('created_at', desc=True)

            if limit:
                query = query.limit(limit)

            response = query.execute()
            return response.data or []

        except Exception as e:
            logger.error(f"Error fetching issues: {e}")
            return []

    async def count_issues(
        self,
        status: Optional[str] = None,
        exclude_status: Optional[str] = None
    ) -> int:
        """Count issues, optionally matching or excluding a status."""
        try:
            query = self.client.table('issues').select('*', count='exact', head=True)

            if status:
                query = query.eq('status', status)

            if exclude_status:
                query = query.neq('status', exclude_status)

            response = query.execute()
            return response.count or 0

        except Exception as e:
            logger.error(f"Error counting issues: {e}")
            return 0

    async def create_issue(
        self,
        issue: IssueCreate,
        user_id: str,
        image_url: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Insert a new issue with status 'Submitted'.

        Raises:
            RemoteOperationError: if the insert is rejected
        """
        data = {
            "title": issue.title,
            "description": issue.description,
            "category": issue.category.value,
            "location": issue.location,
            "latitude": issue.latitude,
            "longitude": issue.longitude,
            "submitted_by": user_id,
            "image_url": image_url,
            "is_emergency": issue.is_emergency,
            "status": IssueStatus.SUBMITTED.value
        }

        try:
            response = self.client.table('issues').insert(data).execute()
        except Exception as e:
            logger.error(f"Error creating issue: {e}")
            raise RemoteOperationError(str(e)) from e

        if not response.data:
            raise RemoteOperationError("Failed to create issue")

        logger.info(f"Issue created: title={issue.title}, category={issue.category.value}, user={user_id}")
        return response.data[0]

    async def update_issue_status(self, issue_id: int, status: str) -> Dict[str, Any]:
        """
        Set the status of one issue.

        Raises:
            RemoteOperationError: if the update is rejected or matches no row
        """
        try:
            response = self.client.table('issues')\
                .update({"status": status})\
                .eq('id', issue_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating issue {issue_id}: {e}")
            raise RemoteOperationError(str(e)) from e

        if not response.data:
            raise RemoteOperationError(f"Issue {issue_id} not found")

        logger.info(f"Issue {issue_id} marked as {status}")
        return response.data[0]

    # ============= Profiles =============

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a profile row by user id."""
        try:
            response = self.client.table('profiles').select('*').eq('id', user_id).limit(1).execute()

            if not response.data:
                return None

            return response.data[0]

        except Exception as e:
            logger.error(f"Error fetching profile {user_id}: {e}")
            return None

    async def count_profiles(self) -> int:
        try:
            response = self.client.table('profiles').select('*', count='exact', head=True).execute()
            return response.count or 0
        except Exception as e:
            logger.error(f"Error counting profiles: {e}")
            return 0

    async def upsert_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        """Create or overwrite a profile row keyed by its id."""
        try:
            response = self.client.table('profiles').upsert(profile).execute()
        except Exception as e:
            logger.error(f"Error saving profile {profile.get('id')}: {e}")
            raise RemoteOperationError(str(e)) from e

        return response.data[0] if response.data else profile

    async def update_profile(self, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.table('profiles').update(fields).eq('id', user_id).execute()
        except Exception as e:
            logger.error(f"Error updating profile {user_id}: {e}")
            raise RemoteOperationError(str(e)) from e

        if not response.data:
            raise RemoteOperationError(f"Profile {user_id} not found")

        return response.data[0]

    # ============= Verifications & badges =============

    async def insert_verification(self, issue_id: int, user_id: str, is_dispute: bool) -> Dict[str, Any]:
        """Record a community vote on an issue."""
        data = {"issue_id": issue_id, "user_id": user_id, "is_dispute": is_dispute}

        try:
            response = self.client.table('verifications').insert(data).execute()
        except Exception as e:
            logger.error(f"Error recording vote on issue {issue_id}: {e}")
            raise RemoteOperationError(str(e)) from e

        return response.data[0] if response.data else data

    async def list_badges(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            response = self.client.table('badges').select('*').eq('user_id', user_id).execute()
            return response.data or []
        except Exception as e:
            logger.error(f"Error fetching badges for {user_id}: {e}")
            return []

    # ============= Storage =============

    async def upload_file(
        self,
        path: str,
        content: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False
    ) -> str:
        """
        Upload a file to the bucket and return its public URL.

        Raises:
            RemoteOperationError: if the upload is rejected
        """
        file_options = {"upsert": "true" if upsert else "false"}
        if content_type:
            file_options["content-type"] = content_type

        bucket = self.client.storage.from_(self.bucket)

        try:
            bucket.upload(path, content, file_options)
        except Exception as e:
            logger.error(f"Error uploading {path}: {e}")
            raise RemoteOperationError(str(e)) from e

        return bucket.get_public_url(path)
