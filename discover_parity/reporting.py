"""
Run artifacts.

Writes a timestamped JSON file and a plain-text summary for each run
into the report directory.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from .utils import setup_logger


class ReportWriter:
    """Write JSON + text artifacts for a run."""

    def __init__(self, output_dir: Path, log_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = setup_logger("reporting", log_dir)

    def _stem(self, name: str, timestamp: Optional[datetime] = None) -> str:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in name).strip("_") or "run"
        stamp = (timestamp or datetime.now()).strftime("%Y%m%d_%H%M%S")
        return f"{safe}_{stamp}"

    def write(self, name: str, result, timestamp: Optional[datetime] = None) -> Tuple[Path, Path]:
        """
        Persist a result object.

        Args:
            name: Report name, used as the file stem prefix
            result: Anything exposing to_dict() and summary()
            timestamp: Override for the file timestamp

        Returns:
            Tuple of (json_path, text_path)
        """
        stem = self._stem(name, timestamp)
        json_path = self.output_dir / f"{stem}.json"
        text_path = self.output_dir / f"{stem}.txt"

        payload = result.to_dict()
        payload["generated_at"] = (timestamp or datetime.now()).isoformat()

        json_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        text_path.write_text(result.summary() + "\n", encoding="utf-8")

        self.logger.info(f"Report written: {json_path}")
        return json_path, text_path

    def write_text(self, name: str, text: str, timestamp: Optional[datetime] = None) -> Path:
        """Persist a free-form text report (e.g. the sweep table)."""
        path = self.output_dir / f"{self._stem(name, timestamp)}.txt"
        path.write_text(text + "\n", encoding="utf-8")
        self.logger.info(f"Report written: {path}")
        return path
