"""
Report generation for organize runs.
Summarizes the per-file results of a call as plain text or JSON.
"""

import json
import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sortd.organization_logic.engine import (
    ACTION_FAILED,
    ACTION_WOULD_MOVE,
    OrganizeResult,
)

logger = logging.getLogger(__name__)


class ReportGenerator:
    """Generate reports on the results of an organize call."""

    def __init__(
        self,
        results: List[OrganizeResult],
        dry_run: bool = False,
        aborted_at: Optional[str] = None,
    ):
        """
        Initialize report generator.

        Args:
            results: Results in processing order
            dry_run: Whether the results come from a preview
            aborted_at: Source path the batch stopped at, if it was aborted
        """
        self.results = list(results)
        self.dry_run = dry_run
        self.aborted_at = aborted_at
        self.generated_at = datetime.now()

    def get_summary(self) -> Dict[str, Any]:
        """Count results by outcome."""
        failed = sum(1 for r in self.results if r.error is not None)
        moved = sum(1 for r in self.results if r.moved)
        planned = sum(
            1
            for r in self.results
            if not r.moved and r.error is None and r.action == ACTION_WOULD_MOVE
        )

        return {
            "total": len(self.results),
            "moved": moved,
            "would_move": planned,
            "unmoved": len(self.results) - moved - failed,
            "failed": failed,
            "by_action": dict(Counter(r.action for r in self.results)),
            "dry_run": self.dry_run,
            "aborted_at": self.aborted_at,
        }

    def format_result(self, result: OrganizeResult) -> str:
        """Render one result as a single line; errors appear verbatim."""
        if result.action == ACTION_FAILED or result.error is not None:
            return f"FAILED  {result.source_path}: {result.error}"
        if result.destination_path is None:
            return f"{result.action.upper():<8}{result.source_path}"
        return (
            f"{result.action.upper():<8}{result.source_path} -> "
            f"{result.destination_path}"
        )

    def generate_text_report(self) -> str:
        """Generate a plain-text summary followed by one line per file."""
        summary = self.get_summary()
        title = "Organization Report"
        if self.dry_run:
            title += " (dry run)"

        lines = [
            title,
            "=" * len(title),
            f"Generated: {self.generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            f"Files processed: {summary['total']}",
        ]
        if self.dry_run:
            lines.append(f"Would move: {summary['would_move']}")
        else:
            lines.append(f"Moved: {summary['moved']}")
        lines.append(f"Not moved: {summary['unmoved']}")
        lines.append(f"Failed: {summary['failed']}")

        if self.aborted_at:
            lines.append(f"Aborted at: {self.aborted_at}")

        if self.results:
            lines.append("")
            lines.append("Files:")
            lines.extend(f"  {self.format_result(r)}" for r in self.results)

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "summary": self.get_summary(),
            "results": [r.to_dict() for r in self.results],
        }

    def export_json(self, output_path: Union[str, Path]) -> Path:
        """Write the report as JSON.

        Args:
            output_path: Destination file; parent directories are created

        Returns:
            Path of the written report
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Report exported to {output_path}")
        return output_path
