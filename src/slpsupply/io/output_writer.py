from __future__ import annotations

import json
import sys
from typing import List, Optional, TextIO

from slpsupply.core.models import SupplyReport
from slpsupply.io.schemas import report_to_dict


def render_report(report: SupplyReport) -> str:
    """
    Unspent ledger entries as JSON, then the three supply figures.
    """
    d = report_to_dict(report)

    lines: List[str] = []
    lines.append(json.dumps(d["unspent"], indent=2))
    lines.append(f"minted: {d['minted']}")
    lines.append(f"burned: {d['burned']}")
    lines.append(f"circulating: {d['circulating']}")
    return "\n".join(lines) + "\n"


def write_report(report: SupplyReport, stream: Optional[TextIO] = None) -> None:
    out = stream or sys.stdout
    out.write(render_report(report))
    out.flush()
