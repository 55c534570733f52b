"""Summary of the alerts created on a given day."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List

import pandas as pd

from .repository import AlertStore, PatientDirectory

_COLUMNS = ["alert_id", "label", "subject", "recipients"]


def _name(directory: PatientDirectory, user_id: int) -> str:
    return directory.display_name(user_id) or f"UserId {user_id}"


def _unique(values) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        for item in value if isinstance(value, list) else [value]:
            seen.setdefault(item, None)
    return list(seen)


def build_alert_report(store: AlertStore, directory: PatientDirectory, day: date) -> Dict[str, Any]:
    """Group the alerts created on ``day`` by type with subject and recipient names."""

    labels = {alert_type.alert_type_id: alert_type.label for alert_type in store.list_alert_types()}
    rows = [
        {
            "alert_id": alert.alert_id,
            "label": labels.get(alert.alert_type_id, str(alert.alert_type_id)),
            "subject": _name(directory, alert.user_id),
            "recipients": [_name(directory, r.recipient_user_id) for r in store.list_recipients(alert.alert_id)],
        }
        for alert in store.alerts_created_on(day)
    ]
    frame = pd.DataFrame(rows, columns=_COLUMNS)

    types: List[Dict[str, Any]] = []
    for label, group in frame.groupby("label", sort=True):
        types.append(
            {
                "label": label,
                "count": int(len(group)),
                "subjects": _unique(group["subject"]),
                "recipients": _unique(group["recipients"]),
            }
        )
    types.sort(key=lambda item: (-item["count"], item["label"]))

    return {
        "date": day.isoformat(),
        "total_alerts": int(len(frame)),
        "types": types,
    }


def format_report_table(report: Dict[str, Any]) -> str:
    """Render a report as the plain-text table printed after a run."""

    lines = [
        "",
        "================= ALERTS REPORT =================",
        f"Date: {report['date']}",
        f"Total alerts generated today: {report['total_alerts']}",
    ]
    if report["types"]:
        lines.append("")
        lines.append("| Alert Type                    | Count | Users")
        lines.append("|-------------------------------|-------|------------------------------")
        for entry in report["types"]:
            lines.append(f"| {entry['label']:<29} | {entry['count']:>5} | {', '.join(entry['subjects'])}")
    else:
        lines.append("No alerts generated today.")
    lines.append("=================================================")
    return "\n".join(lines) + "\n"
