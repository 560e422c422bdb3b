"""
Flat-file store for client analytics and performance reports.

The whole document lives in memory and is rewritten to a single JSON file after
every mutation. It is a best-effort sink: read and write failures are logged and
never raised to the caller. The lock only serialises writers inside this process;
several worker processes sharing one file can still overwrite each other.
"""
from __future__ import annotations

import copy
import json
import os
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Optional

from pos_app.config import get_settings
from pos_app.logging_conf import get_logger

logger = get_logger(__name__)

MAX_RECORDS = 1000
RECENT_LIMIT = 100
ERROR_KEY_LENGTH = 50
TOP_ERRORS = 10
TELEMETRY_FILENAME = "analytics.json"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _empty_document() -> dict[str, Any]:
    return {
        "page_views": {},
        "events": {"records": [], "counts": {}},
        "performance": {"timings": []},
        "errors": {"records": []},
        "last_updated": _now(),
    }


def _recent(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Last RECENT_LIMIT entries, newest first."""
    return list(reversed(records[-RECENT_LIMIT:]))


def _section(loaded: dict[str, Any], key: str) -> dict[str, Any]:
    value = loaded.get(key)
    return value if isinstance(value, dict) else {}


def _records(value: Any, required: dict[str, Any]) -> list[dict[str, Any]]:
    """Keep list entries that are dicts whose `required` fields have the expected types."""
    if not isinstance(value, list):
        return []
    return [
        r for r in value
        if isinstance(r, dict) and all(isinstance(r.get(k), t) for k, t in required.items())
    ]


def _from_file(loaded: Any) -> dict[str, Any]:
    """
    Rebuild a document from whatever was on disk. Sections or entries with the
    wrong shape are replaced by their empty defaults.
    """
    data = _empty_document()
    if not isinstance(loaded, dict):
        return data

    data["page_views"] = {
        path: entry
        for path, entry in _section(loaded, "page_views").items()
        if isinstance(entry, dict) and isinstance(entry.get("count"), int)
    }

    events = _section(loaded, "events")
    data["events"]["records"] = _records(events.get("records"), {"event": str})
    data["events"]["counts"] = {
        name: n for name, n in _section(events, "counts").items() if isinstance(n, int)
    }

    data["performance"]["timings"] = _records(
        _section(loaded, "performance").get("timings"),
        {"url": str, "page_load_time": (int, float)},
    )
    data["errors"]["records"] = _records(_section(loaded, "errors").get("records"), {"message": str})

    if isinstance(loaded.get("last_updated"), str):
        data["last_updated"] = loaded["last_updated"]
    return data


class TelemetryStore:
    def __init__(self, directory: str):
        self.directory = directory
        self.path = os.path.join(directory, TELEMETRY_FILENAME)
        self._data: Optional[dict[str, Any]] = None
        self._lock = threading.RLock()

    # --- persistence ---

    def _load(self) -> dict[str, Any]:
        if not os.path.exists(self.path):
            return _empty_document()
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                loaded = json.load(fh)
        except (OSError, ValueError):
            logger.exception("Error reading telemetry file", extra={"path": self.path})
            return _empty_document()
        return _from_file(loaded)

    @property
    def data(self) -> dict[str, Any]:
        with self._lock:
            if self._data is None:
                self._data = self._load()
            return self._data

    def _save(self) -> None:
        data = self.data
        data["last_updated"] = _now()
        try:
            os.makedirs(self.directory, exist_ok=True)
            tmp_path = self.path + ".tmp"
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, ensure_ascii=False, default=str)
            os.replace(tmp_path, self.path)
        except OSError:
            logger.exception("Error writing telemetry file", extra={"path": self.path})

    # --- page views ---

    def record_page_view(self, path: str) -> int:
        with self._lock:
            page_views = self.data["page_views"]
            now = _now()
            entry = page_views.setdefault(path, {"path": path, "count": 0, "last_viewed": now})
            entry["count"] += 1
            entry["last_viewed"] = now
            self._save()
            return entry["count"]

    def get_page_views(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self.data["page_views"])

    # --- events ---

    def record_event(self, name: str, properties: Optional[dict[str, Any]] = None) -> None:
        properties = properties or {}
        with self._lock:
            events = self.data["events"]
            events["records"].append({"event": name, "properties": properties, "timestamp": _now()})

            counts = events["counts"]
            counts[name] = counts.get(name, 0) + 1
            # per-category counter for the public menu
            if name == "view_category" and properties.get("category_name"):
                key = f"category_{properties['category_name']}"
                counts[key] = counts.get(key, 0) + 1

            events["records"] = events["records"][-MAX_RECORDS:]
            self._save()

    def event_count(self, name: str) -> int:
        with self._lock:
            return self.data["events"]["counts"].get(name, 0)

    def get_event_data(self) -> dict[str, Any]:
        with self._lock:
            events = self.data["events"]
            return {
                "counts": dict(events["counts"]),
                "recent_events": copy.deepcopy(_recent(events["records"])),
            }

    # --- performance ---

    def record_performance_timing(
        self,
        page_load_time: float,
        url: str,
        time_to_first_byte: float = 0,
        dom_content_loaded: float = 0,
    ) -> None:
        with self._lock:
            perf = self.data["performance"]
            perf["timings"].append({
                "page_load_time": page_load_time,
                "url": url,
                "time_to_first_byte": time_to_first_byte,
                "dom_content_loaded": dom_content_loaded,
                "timestamp": _now(),
            })
            perf["timings"] = perf["timings"][-MAX_RECORDS:]
            self._save()

    def get_performance_data(self, url: Optional[str] = None) -> dict[str, Any]:
        """Recent timings (optionally for one url) plus per-url averages over all timings."""
        with self._lock:
            timings = list(self.data["performance"]["timings"])

        filtered = [t for t in timings if t["url"] == url] if url else timings

        groups: dict[str, list[float]] = {}
        for t in timings:
            groups.setdefault(t["url"], []).append(t["page_load_time"])
        averages = [
            {
                "url": u,
                "average_load_time": round(sum(times) / len(times)),
                "sample_count": len(times),
            }
            for u, times in groups.items()
        ]
        return {"recent_timings": copy.deepcopy(_recent(filtered)), "averages": averages}

    # --- errors ---

    def record_error(
        self,
        message: str,
        stack: Optional[str] = None,
        url: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        with self._lock:
            errors = self.data["errors"]
            errors["records"].append({
                "message": message,
                "stack": stack,
                "url": url,
                "context": context,
                "timestamp": _now(),
            })
            errors["records"] = errors["records"][-MAX_RECORDS:]
            self._save()

    def get_error_data(self) -> dict[str, Any]:
        with self._lock:
            records = list(self.data["errors"]["records"])

        counts = Counter(r["message"][:ERROR_KEY_LENGTH] for r in records)
        most_common = [{"message": m, "count": c} for m, c in counts.most_common(TOP_ERRORS)]
        return {
            "recent_errors": copy.deepcopy(_recent(records)),
            "most_common_errors": most_common,
            "total_errors": len(records),
        }


_store: Optional[TelemetryStore] = None
_store_lock = threading.Lock()


def get_telemetry_store() -> TelemetryStore:
    """FastAPI dependency returning the process-wide store."""
    global _store
    with _store_lock:
        if _store is None:
            _store = TelemetryStore(get_settings().telemetry_dir)
        return _store
