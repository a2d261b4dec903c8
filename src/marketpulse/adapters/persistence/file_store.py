# src/marketpulse/adapters/persistence/file_store.py
"""
File Store - JSON-backed Subscriber Registry

This module keeps the subscriber registry in a single JSON document:

    {"subscribers": [{"id": 123456789, "registered_at": "2026-01-01T08:00:00+00:00"}]}

Writes go to a temporary file that atomically replaces the document, so a
crash or cancellation never leaves a half-written registry. An in-process
lock serializes ``register`` against ``all``; ``all`` hands out an immutable
snapshot.

The older one-id-per-line ``users.txt`` layout is still readable and is
converted to JSON on the next registration.

Files that USE this module:
- marketpulse.adapters.persistence (build_registry for REGISTRY_BACKEND=file)
- tests.test_registry (unit tests)

Files that this module USES:
- marketpulse.shared.validators (normalize_recipient_id)
- marketpulse.domain.models (Recipient)
"""
from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union

from marketpulse.domain.errors import RegistryWriteError
from marketpulse.domain.models import Recipient, RecipientId
from marketpulse.shared.validators import normalize_recipient_id

log = logging.getLogger(__name__)


def _parse_ts(raw) -> Optional[datetime]:
    if not isinstance(raw, str):
        return None
    # Accept both "...Z" and "+00:00"
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class FileSubscriberRegistry:
    """Subscriber registry persisted as a JSON file."""

    def __init__(
        self,
        path: Union[str, Path],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the registry and load persisted subscribers if available.

        Args:
            path: JSON document location (parent directory is created)
            clock: Source of registration timestamps (defaults to UTC now)
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._recipients: Dict[RecipientId, Recipient] = self._load()
        log.info("Loaded %d subscribers from %s", len(self._recipients), self.path)

    def _load(self) -> Dict[RecipientId, Recipient]:
        """
        Read the registry file.

        Handles damaged files by:
        1. Accepting the legacy one-id-per-line format
        2. Otherwise backing the file up as ``*.corrupt`` and starting empty
        3. Skipping individual malformed entries
        """
        if not self.path.exists():
            return {}

        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = None

        # A lone legacy id ("123\n") is valid JSON too
        if not isinstance(data, dict):
            legacy = self._parse_legacy(text)
            if legacy is not None:
                log.info("Read %d subscribers from legacy line format in %s", len(legacy), self.path)
                return legacy
            backup_path = self.path.with_suffix(self.path.suffix + ".corrupt")
            try:
                shutil.copy2(self.path, backup_path)
                log.warning("Subscriber file corrupted, backed up to %s", backup_path)
            except OSError as backup_error:
                log.error("Failed to back up corrupt subscriber file: %s", backup_error)
            return {}

        entries = data.get("subscribers", [])
        if not isinstance(entries, list):
            log.warning("Subscriber file has no subscriber list, starting empty")
            entries = []
        recipients: Dict[RecipientId, Recipient] = {}
        for item in entries:
            try:
                rid = normalize_recipient_id(item["id"])
                registered_at = _parse_ts(item.get("registered_at")) or self._clock()
            except (KeyError, TypeError, ValueError) as e:
                log.warning("Skipping malformed subscriber entry %r: %s", item, e)
                continue
            recipients[rid] = Recipient(id=rid, registered_at=registered_at)
        return recipients

    def _parse_legacy(self, text: str) -> Optional[Dict[RecipientId, Recipient]]:
        """Parse one id per line; None if any line is not an id."""
        registered_at = datetime.fromtimestamp(self.path.stat().st_mtime, tz=timezone.utc)
        recipients: Dict[RecipientId, Recipient] = {}
        for line in text.splitlines():
            if not line.strip():
                continue
            try:
                rid = normalize_recipient_id(line)
            except ValueError:
                return None
            recipients[rid] = Recipient(id=rid, registered_at=registered_at)
        return recipients

    def _save(self, recipients: Dict[RecipientId, Recipient]) -> None:
        """
        Persist the registry using an atomic write.

        Raises:
            RegistryWriteError: If the document cannot be written
        """
        payload = {
            "subscribers": [
                {"id": r.id, "registered_at": r.registered_at.isoformat()}
                for r in recipients.values()
            ]
        }
        temp_path = None
        try:
            temp_fd, temp_path = tempfile.mkstemp(
                suffix=".json.tmp",
                dir=str(self.path.parent),
                text=True,
            )
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, str(self.path))
        except OSError as e:
            if temp_path:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            raise RegistryWriteError(f"Failed to save subscriber file: {e}") from e

    def register(self, recipient_id: RecipientId, now: Optional[datetime] = None) -> Recipient:
        """
        Add a recipient, or refresh its registration time if already present.

        Args:
            recipient_id: Chat id or @channel username
            now: Registration time (defaults to the registry clock)

        Returns:
            The stored Recipient

        Raises:
            ValueError: If the id is not a valid chat id/username
            RegistryWriteError: If persisting fails; the registry is unchanged
        """
        rid = normalize_recipient_id(recipient_id)
        with self._lock:
            recipient = Recipient(id=rid, registered_at=now or self._clock())
            existed = rid in self._recipients
            updated = dict(self._recipients)
            updated[rid] = recipient
            self._save(updated)
            self._recipients = updated

        if existed:
            log.info("Subscriber re-registered: %s", rid)
        else:
            log.info("New subscriber registered: %s", rid)
        return recipient

    def all(self) -> Tuple[Recipient, ...]:
        """Snapshot of all subscribers in registration order."""
        with self._lock:
            return tuple(self._recipients.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._recipients)
