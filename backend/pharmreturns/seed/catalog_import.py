"""
Catalog CSV import: parse an NDC product file into seed-shaped rows.

Accepts the FDA NDC directory export (PRODUCTNDC, PROPRIETARYNAME, ...) as
well as friendlier headers; each internal field lists the header aliases it
is recognised by (lowercased, spaces/underscores/dashes removed).
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from pharmreturns.services.catalog import DEA_SCHEDULES
from pharmreturns.services.ndc import validate_ndc

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, list[str]] = {
    "ndc": ["ndc", "ndcpackagecode", "packagendc", "ndccode", "nationaldrugcode", "productndc"],
}

OPTIONAL_COLUMNS: dict[str, list[str]] = {
    "proprietary_name": ["proprietaryname", "brandname", "tradename"],
    "nonproprietary_name": ["nonproprietaryname", "genericname", "substancename"],
    "manufacturer_name": ["manufacturername", "labelername", "manufacturer", "labeler"],
    "strength": ["strength", "activenumeratorstrength"],
    "dosage_form": ["dosageform", "dosageformname", "form"],
    "dea_schedule": ["deaschedule", "schedule"],
    "wac": ["wac", "wholesaleacquisitioncost", "unitprice", "price"],
    "return_window": ["returnwindow", "returnwindowdays"],
    "credit_percentage": ["creditpercentage", "creditpct", "credit"],
}

MAX_NAME_LENGTH = 255


def _normalize(name: str) -> str:
    """Lowercase, strip spaces/underscores/dashes for fuzzy matching."""
    return name.lower().replace(" ", "").replace("_", "").replace("-", "")


def map_columns(headers: list[str]) -> dict[str, str | None]:
    """Map each internal field to the first CSV header matching one of its aliases."""
    by_normalized = {_normalize(h): h for h in headers}
    mapping: dict[str, str | None] = {}
    for target, aliases in {**REQUIRED_COLUMNS, **OPTIONAL_COLUMNS}.items():
        mapping[target] = next(
            (by_normalized[a] for a in aliases if a in by_normalized), None
        )
    return mapping


def _truncate(val: str | None, max_length: int = MAX_NAME_LENGTH) -> str | None:
    if not val or not val.strip():
        return None
    val = val.strip()
    return val[:max_length]


def _parse_decimal(val: str | None) -> Decimal | None:
    if not val or not val.strip():
        return None
    try:
        value = Decimal(val.strip().replace(",", "").replace("$", ""))
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() and value >= 0 else None


def _parse_int(val: str | None) -> int | None:
    if not val or not val.strip():
        return None
    try:
        return int(float(val.strip()))
    except (ValueError, TypeError, OverflowError):
        return None


def _dea_schedule(val: str | None) -> str | None:
    if not val:
        return None
    schedule = val.strip().upper()
    return schedule if schedule in DEA_SCHEDULES else None


@dataclass
class ImportResult:
    rows: list[dict] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "imported": len(self.rows),
            "skipped": len(self.skipped),
            "errors": self.skipped[:50],
        }


def parse_catalog_csv(content: str) -> ImportResult:
    """Parse CSV text into seed-shaped product rows, skipping bad NDCs."""
    reader = csv.DictReader(io.StringIO(content))
    headers = reader.fieldnames or []
    mapping = map_columns(headers)
    if mapping["ndc"] is None:
        raise ValueError(f"No NDC column found in headers: {headers}")

    def cell(row: dict, target: str) -> str | None:
        header = mapping.get(target)
        return row.get(header) if header else None

    result = ImportResult()
    seen: set[str] = set()
    for line_no, row in enumerate(reader, start=2):
        raw_ndc = cell(row, "ndc")
        normalized, valid = validate_ndc(raw_ndc)
        if not valid:
            result.skipped.append({"line": line_no, "ndc": raw_ndc, "reason": "invalid NDC"})
            continue
        if normalized in seen:
            result.skipped.append({"line": line_no, "ndc": normalized, "reason": "duplicate NDC"})
            continue
        raw_wac = cell(row, "wac")
        wac = _parse_decimal(raw_wac)
        if wac is None and raw_wac and raw_wac.strip():
            result.skipped.append({"line": line_no, "ndc": normalized, "reason": "invalid WAC"})
            continue
        seen.add(normalized)

        window = _parse_int(cell(row, "return_window"))
        credit = _parse_int(cell(row, "credit_percentage"))
        schedule = _dea_schedule(cell(row, "dea_schedule"))
        result.rows.append({
            "ndc": normalized,
            "proprietary_name": _truncate(cell(row, "proprietary_name")),
            "nonproprietary_name": _truncate(cell(row, "nonproprietary_name")) or "",
            "manufacturer_name": _truncate(cell(row, "manufacturer_name"), 200) or "",
            "strength": _truncate(cell(row, "strength"), 100) or "",
            "dosage_form": _truncate(cell(row, "dosage_form"), 100) or "",
            "dea_schedule": schedule,
            "wac": wac if wac is not None else Decimal("0"),
            "return_eligible": True,
            "return_window": window if window is not None and window >= 0 else 180,
            "credit_percentage": min(max(credit, 0), 100) if credit is not None else 0,
            "requires_dea_form": schedule == "CII",
            "destruction_required": schedule is not None,
        })

    logger.info("Parsed %d catalog rows (%d skipped)", len(result.rows), len(result.skipped))
    return result
