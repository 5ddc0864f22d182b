"""Sync licensing package helpers for tracks.

A track is "sync ready" once all six deliverables of the "Record for Sync"
checklist are in place. Uploaded deliverables live in the storage bucket under
``{userId}/{trackId}/{filename}``.
"""

import uuid
from dataclasses import dataclass

# Checklist key -> file URL key. Order matches the checklist shown to artists.
SYNC_ITEMS: dict[str, str] = {
    "mp3_ready": "mp3_url",
    "master_wav_ready": "master_wav_url",
    "acapella_wav_ready": "acapella_wav_url",
    "instrumental_wav_ready": "instrumental_wav_url",
    "splits_sheet_ready": "splits_sheet_url",
    "one_stop_ready": "one_stop_url",
}

SYNC_CHECKLIST_KEYS: tuple[str, ...] = tuple(SYNC_ITEMS.keys())
SYNC_FILE_KEYS: tuple[str, ...] = tuple(SYNC_ITEMS.values())

REGISTRATION_KEYS: tuple[str, ...] = ("pro", "soundExchange", "mlc", "distributor")


@dataclass(frozen=True)
class SyncReadiness:
    """How much of the sync package is in place."""

    completed: int
    total: int
    missing: tuple[str, ...]

    @property
    def is_complete(self) -> bool:
        return self.completed == self.total


def default_sync_checklist() -> dict[str, bool]:
    return {key: False for key in SYNC_CHECKLIST_KEYS}


def default_sync_files() -> dict[str, str | None]:
    return {key: None for key in SYNC_FILE_KEYS}


def default_registration_status() -> dict[str, bool]:
    return {key: False for key in REGISTRATION_KEYS}


def storage_key(user_id: uuid.UUID | str, track_id: uuid.UUID | str, filename: str) -> str:
    """Build the object-storage key for a track deliverable.

    Path separators in ``filename`` are dropped so a crafted name cannot
    escape the track's folder.
    """
    safe_name = filename.replace("\\", "/").rsplit("/", 1)[-1].strip()
    if not safe_name or safe_name in (".", ".."):
        raise ValueError(f"Invalid filename: {filename!r}")
    return f"{user_id}/{track_id}/{safe_name}"


def sync_readiness(
    checklist: dict[str, bool] | None,
    files: dict[str, str | None] | None = None,
) -> SyncReadiness:
    """Count completed checklist items.

    An item counts as done when its box is ticked or its file has been
    uploaded; unknown keys in the stored JSON are ignored.
    """
    checklist = checklist or {}
    files = files or {}
    missing = tuple(
        key
        for key, file_key in SYNC_ITEMS.items()
        if not checklist.get(key) and not files.get(file_key)
    )
    total = len(SYNC_ITEMS)
    return SyncReadiness(completed=total - len(missing), total=total, missing=missing)
