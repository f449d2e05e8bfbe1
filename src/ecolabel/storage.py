"""JSON report storage on disk."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .exceptions import ReportNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportInfo:
    """A stored report file."""
    filename: str
    created_at: datetime
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "createdAt": self.created_at.isoformat(),
            "size": self.size,
        }


class ReportStore:
    """Reports kept as JSON files in a single directory, keyed by filename."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def _path(self, filename: str) -> Path:
        # Only plain file names, no directories
        if not filename or Path(filename).name != filename or filename in (".", ".."):
            raise ReportNotFoundError(f"Report not found: {filename}")
        return self.root / filename

    def save(self, filename: str, payload: dict[str, Any]) -> Path:
        """Write a report and return its path."""
        path = self._path(filename)
        self.root.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info("Report saved: %s", path)
        return path

    def list(self) -> list[ReportInfo]:
        """List stored reports, newest first."""
        if not self.root.is_dir():
            return []
        reports = []
        for path in self.root.glob("*.json"):
            stat = path.stat()
            reports.append(ReportInfo(
                filename=path.name,
                created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                size=stat.st_size,
            ))
        return sorted(reports, key=lambda r: (r.created_at, r.filename), reverse=True)

    def load(self, filename: str) -> dict[str, Any]:
        """Read a stored report.

        Raises:
            ReportNotFoundError: if no such report exists
        """
        path = self._path(filename)
        if not path.is_file():
            raise ReportNotFoundError(f"Report not found: {filename}")
        return json.loads(path.read_text(encoding="utf-8"))
