"""Report export for Solvent.

Renders a ScanReport as JSON or CSV and writes it to a timestamped file.
"""

import csv
import io
import json
from typing import Optional

from solvent.config import lamports_to_sol
from solvent.logging_config import get_logger
from solvent.models import ScanReport, SponsoredAccount
from solvent.utils.errors import ValidationError

logger = get_logger(__name__)

EXPORT_FORMATS = ("json", "csv")

CSV_HEADER = [
    "Address", "Type", "Owner", "CloseAuthority", "Mint", "RentSOL",
    "TokenBalance", "Classification", "Status", "CreatedAt",
]


def _created_at(account: SponsoredAccount) -> str:
    return account.created_at.isoformat() if account.created_at else ""


def report_to_dict(report: ScanReport) -> dict:
    """Convert a report to the exported JSON structure."""
    stats = report.stats
    return {
        "feePayer": report.fee_payer,
        "network": report.network,
        "exportedAt": report.scanned_at.isoformat(),
        "stats": {
            "totalAccounts": stats.total_accounts,
            "totalRentLocked": stats.total_locked_sol,
            "reclaimable": stats.reclaimable_sol,
            "monitorOnly": stats.monitor_only_sol,
            "closeableAccounts": stats.closeable_accounts,
            "reclaimableAccounts": stats.reclaimable_accounts,
        },
        "accounts": [
            {
                "address": a.address,
                "type": a.type.value,
                "owner": a.owner,
                "closeAuthority": a.close_authority,
                "mint": a.mint,
                "rentSOL": lamports_to_sol(a.rent_lamports),
                "tokenBalance": a.token_balance,
                "classification": a.classification.value,
                "status": a.status.value,
                "createdAt": _created_at(a) or None,
            }
            for a in report.accounts
        ],
    }


def export_json(report: ScanReport) -> str:
    return json.dumps(report_to_dict(report), indent=2)


def export_csv(report: ScanReport) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for a in report.accounts:
        writer.writerow([
            a.address,
            a.type.value,
            a.owner,
            a.close_authority or "",
            a.mint or "",
            lamports_to_sol(a.rent_lamports),
            a.token_balance,
            a.classification.value,
            a.status.value,
            _created_at(a),
        ])
    return buffer.getvalue()


def write_report(report: ScanReport, fmt: str = "json", output: str = "solvent-report",
                 filename: Optional[str] = None) -> str:
    """Write a report to disk.
    
    Args:
        report: Scan report
        fmt: "json" or "csv"
        output: Filename prefix; a timestamp and extension are appended
        filename: Exact filename, overriding ``output``
        
    Returns:
        The path written
    """
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(f"Export format must be one of: {', '.join(EXPORT_FORMATS)}")
    
    if filename is None:
        timestamp = report.scanned_at.strftime("%Y-%m-%dT%H-%M-%S")
        filename = f"{output}-{timestamp}.{fmt}"
    
    content = export_json(report) if fmt == "json" else export_csv(report)
    with open(filename, "w", encoding="utf-8") as f:
        f.write(content)
    
    logger.info(f"Exported {len(report.accounts)} accounts to {filename}")
    return filename
