from __future__ import annotations

import datetime
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional


DATA_DIR = Path(__file__).resolve().parent / "data"
AUDIT_FILE = DATA_DIR / "audit.log"

OBSERVATION_SAVED = "observation_saved"
OBSERVATION_AUTOSAVED = "observation_autosaved"
REPORT_EXPORTED = "report_exported"
EVENTS = (OBSERVATION_SAVED, OBSERVATION_AUTOSAVED, REPORT_EXPORTED)


class AuditLogger:
    """Trail of observation saves and report exports, one JSON object per line.

    Every entry names the store log it touched, so one file can serve all
    profiles and still be read back per store.
    """

    def __init__(self, file_path: Path) -> None:
        self.file_path = file_path

    def log(
        self,
        event: str,
        username: Optional[str],
        *,
        profile: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        if event not in EVENTS:
            raise ValueError(f"Unknown audit event '{event}'.")
        entry: Dict[str, Any] = {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="seconds"),
            "event": event,
            "username": username or None,
            "profile": profile,
            "details": dict(details or {}),
        }
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with self.file_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, sort_keys=True) + "\n")
        return entry

    def entries(
        self,
        event: Optional[str] = None,
        *,
        profile: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Logged events, oldest first; ``limit`` keeps only the newest ones.

        Lines that are not JSON objects are skipped.
        """
        if not self.file_path.exists():
            return []
        results: List[Dict[str, Any]] = []
        with self.file_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                try:
                    payload = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if not isinstance(payload, dict):
                    continue
                if event is not None and payload.get("event") != event:
                    continue
                if profile is not None and payload.get("profile") != profile:
                    continue
                results.append(payload)
        if limit is not None:
            results = results[-limit:] if limit > 0 else []
        return results
