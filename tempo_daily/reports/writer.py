"""
Report persistence.

One directory per JST date, one file per run:

    <base>/<dateJst>/run-<HHMMSS>.json           success
    <base>/<dateJst>/run-<HHMMSS>.failure.json   failure
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from tempo_daily.core.run.models import FailureReport, RunReport


logger = logging.getLogger(__name__)


class ReportWriter:
    """Writes run and failure reports as 2-space indented JSON."""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    def run_report_path(self, date_jst: str, run_id: str) -> Path:
        return self.base_dir / date_jst / f"run-{run_id}.json"

    def failure_report_path(self, date_jst: str, run_id: str) -> Path:
        return self.base_dir / date_jst / f"run-{run_id}.failure.json"

    def write_run_report(self, report: RunReport) -> Path:
        path = self.run_report_path(report.date_jst, report.run_id)
        self._write(path, report.to_dict())
        logger.info(f"run report written: {path}")
        return path

    def write_failure_report(self, report: FailureReport) -> Path:
        path = self.failure_report_path(report.date_jst, report.run_id)
        self._write(path, report.to_dict())
        logger.info(f"failure report written: {path}")
        return path

    def _write(self, path: Path, document: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
