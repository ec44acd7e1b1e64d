"""JSON reporter — writes the run snapshot as structured JSON."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from smartreport import __version__

if TYPE_CHECKING:
    from pathlib import Path

    from smartreport.models.summary import RunReport

logger = logging.getLogger(__name__)


class JSONReporter:
    """Serialize a ``RunReport`` into a machine-readable JSON document."""

    def generate(self, output_path: Path, report: RunReport) -> Path:
        """Write the JSON report file.

        Returns:
            The path to the generated file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate_string(report), encoding="utf-8")
        logger.info("JSON report written to %s", output_path)
        return output_path

    def generate_string(self, report: RunReport) -> str:
        """Return the JSON report as a string."""
        return json.dumps(build_payload(report), indent=2, ensure_ascii=False)


def build_payload(report: RunReport) -> dict[str, Any]:
    """Build the document embedded in every report format."""
    return {"tool": "smartreport", "version": __version__, **report.to_dict()}
