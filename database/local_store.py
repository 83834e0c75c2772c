"""
Local persistent store

Key-value persistence of serialized AppState blobs, one JSON file per key.
Used for anonymous sessions, for identities when no remote store is
configured, and as the source of the one-time migration.
"""

import json
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from database.models import AppState
from shared.config import settings

logger = logging.getLogger(__name__)


class LocalStore:
    """File-backed key-value store for state blobs"""

    def __init__(
        self,
        directory: Optional[str] = None,
        namespace: Optional[str] = None,
        anonymous_key: Optional[str] = None
    ):
        self.directory = Path(directory or settings.LOCAL_STORAGE_DIR)
        self.namespace = namespace or settings.STORAGE_NAMESPACE
        self.anonymous_key = anonymous_key or settings.ANONYMOUS_STORAGE_KEY
        self.directory.mkdir(parents=True, exist_ok=True)

    def key_for(self, user_id: Optional[str]) -> str:
        """
        Storage key for an identity

        Args:
            user_id: Authenticated user ID, or None for anonymous mode

        Returns:
            "<namespace>_<userId>" or the anonymous key
        """
        if user_id:
            return f"{self.namespace}_{user_id}"
        return self.anonymous_key

    def _path(self, key: str) -> Path:
        # Percent-encoding is reversible, so distinct keys never share a file
        return self.directory / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[str]:
        """
        Read a raw blob

        Args:
            key: Storage key

        Returns:
            Serialized blob or None if absent
        """
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding='utf-8')

    def set(self, key: str, blob: str) -> None:
        """Write a raw blob (last write wins)"""
        path = self._path(key)
        tmp_path = path.with_name(path.name + '.tmp')
        tmp_path.write_text(blob, encoding='utf-8')
        tmp_path.replace(path)

    def remove(self, key: str) -> None:
        """Delete a blob if present"""
        self._path(key).unlink(missing_ok=True)

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def load_snapshot(self, user_id: Optional[str]) -> Optional[AppState]:
        """
        Load the stored state for an identity without falling back to defaults

        Args:
            user_id: User ID or None

        Returns:
            Upgraded AppState, or None when nothing readable is stored
        """
        key = self.key_for(user_id)
        try:
            blob = self.get(key)
            if blob is None:
                return None
            return AppState.from_dict(json.loads(blob))

        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Failed to load local state for key={key}: {e}")
            return None

    def load_state(self, user_id: Optional[str]) -> AppState:
        """
        Load the state for an identity, falling back to a fresh default

        Args:
            user_id: User ID or None

        Returns:
            Fully populated AppState
        """
        snapshot = self.load_snapshot(user_id)
        if snapshot is None:
            return AppState.default()
        return snapshot

    def save_state(self, user_id: Optional[str], state: AppState) -> bool:
        """
        Persist the state blob for an identity

        Args:
            user_id: User ID or None
            state: State to serialize

        Returns:
            True if written
        """
        key = self.key_for(user_id)
        try:
            self.set(key, json.dumps(state.to_dict(), ensure_ascii=False))
            return True

        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save local state for key={key}: {e}", exc_info=True)
            return False

    def clear(self, user_id: Optional[str]) -> None:
        """Remove the stored state for an identity"""
        key = self.key_for(user_id)
        try:
            self.remove(key)
            logger.info(f"Local state cleared: key={key}")

        except OSError as e:
            logger.error(f"Failed to clear local state for key={key}: {e}", exc_info=True)
