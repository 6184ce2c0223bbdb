"""
Storage for the master-reclaim token

The relay hands the master an opaque token; presenting it in the next
handshake lets the same client take mastership back after a reconnect.
The store is private to one client instance.
"""

import json
import os
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from core.logging_config import get_logger

logger = get_logger(__name__)

# Becomes part of a file name
INSTANCE_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,64}")


class CredentialStore(ABC):
    """Abstract get/set/clear store for the master token"""

    @abstractmethod
    def get(self) -> Optional[str]:
        """Return the stored token, or None"""
        pass

    @abstractmethod
    def set(self, token: str) -> None:
        """Store a token, replacing any previous one"""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Forget the token; safe to call when nothing is stored"""
        pass


class InMemoryCredentialStore(CredentialStore):
    """Token lives as long as the client object"""

    def __init__(self, token: Optional[str] = None):
        self._token = token
        self._lock = threading.Lock()

    def get(self) -> Optional[str]:
        with self._lock:
            return self._token

    def set(self, token: str) -> None:
        with self._lock:
            self._token = token
        logger.debug("Master token stored in memory")

    def clear(self) -> None:
        with self._lock:
            self._token = None
        logger.debug("Master token cleared from memory")


class FileCredentialStore(CredentialStore):
    """
    Token kept in a small JSON file keyed by client instance.

    Lets a restarted console on the same machine reclaim mastership, the
    way a reloaded browser tab keeps its session storage.
    """

    def __init__(self, storage_dir: str, instance_id: str = "operation"):
        """
        Args:
            storage_dir: Directory holding the token files
            instance_id: Key separating client instances sharing the directory
        """
        if not INSTANCE_ID_PATTERN.fullmatch(instance_id):
            raise ValueError(f"Invalid credential instance id: {instance_id!r}")
        self.storage_dir = Path(storage_dir)
        self.instance_id = instance_id
        self._lock = threading.Lock()
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self.storage_dir / f"master_token_{self.instance_id}.json"

    def get(self) -> Optional[str]:
        with self._lock:
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except FileNotFoundError:
                return None
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Unreadable token file {self.path}: {e}")
                return None
        token = data.get("masterToken") if isinstance(data, dict) else None
        return token if isinstance(token, str) and token else None

    def set(self, token: str) -> None:
        with self._lock:
            tmp_path = self.path.with_suffix(".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({"masterToken": token}, f)
            os.replace(tmp_path, self.path)
        logger.debug(f"Master token stored in {self.path}")

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
        logger.debug(f"Master token cleared from {self.path}")
