"""
Export formatters for stories, signals and reports.
"""

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from worldmon.services.reports import CorrelationReport

STORY_CSV_COLUMNS = ("id", "title", "region", "category", "date", "source")


def _dump(item: BaseModel | dict[str, Any]) -> dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json")
    return item


def _export_envelope(key: str, items: list) -> str:
    return json.dumps(
        {
            "exportDate": datetime.now(timezone.utc).isoformat(),
            "count": len(items),
            key: [_dump(item) for item in items],
        },
        indent=2,
        default=str,
    )


def _quoted(value: str) -> str:
    escaped = value.replace('"', '""')
    return f'"{escaped}"'


def _fmt_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC")


class DataExportService:
    """Renders stories, signals and reports for download."""

    @staticmethod
    def export_stories(stories: list) -> str:
        return _export_envelope("stories", stories)

    @staticmethod
    def export_stories_csv(stories: list) -> str:
        """One row per story; title and source are always quoted."""
        lines = [",".join(STORY_CSV_COLUMNS)]
        for story in stories:
            row = _dump(story)
            lines.append(
                ",".join(
                    [
                        str(row.get("id", "")),
                        _quoted(row.get("title") or ""),
                        row.get("region") or "",
                        row.get("category") or "",
                        str(row.get("timestamp") or row.get("date") or ""),
                        _quoted(row.get("source") or ""),
                    ]
                )
            )
        return "\n".join(lines)

    @staticmethod
    def export_signals(signals: list) -> str:
        return _export_envelope("signals", signals)

    @staticmethod
    def export_report(report: CorrelationReport) -> str:
        """Render a report as Markdown."""
        summary = report.summary
        lines = [
            f"# {report.title}",
            "",
            f"*{_fmt_time(report.start)} to {_fmt_time(report.end)}*",
            "",
            "## Summary",
            "",
            f"- Events analyzed: {report.event_count}",
            f"- Status: {summary.status}",
        ]
        lines.extend(f"- {name.title()}: {count}" for name, count in summary.counts.items())

        if report.signals:
            lines += ["", "## Signals", ""]
            lines.extend(
                f"- **{s.title}** ({s.severity}, score {s.score}): {s.description}"
                for s in report.signals
            )

        if report.highlights:
            lines += ["", "## Top Correlations", ""]
            lines += ["| Type | Score | Significance | Description |", "|---|---|---|---|"]
            lines.extend(
                f"| {h.type} | {h.score} | {h.significance} | "
                f"{h.description.replace('|', '/')} |"
                for h in report.highlights
            )

        if report.clusters:
            lines += ["", "## Geographic Clusters", ""]
            lines.extend(
                f"- {c.event_count} events within {c.radius_km:.0f}km of "
                f"({c.center_lat:.2f}, {c.center_lon:.2f}): {', '.join(c.categories)}"
                for c in report.clusters
            )

        if report.patterns:
            lines += ["", "## Recurring Patterns", ""]
            lines.extend(
                f"- `{p.signature}` {p.pattern} (confidence {p.confidence})"
                for p in report.patterns
            )

        lines += ["", f"_Generated {_fmt_time(report.generated_at)}_", ""]
        return "\n".join(lines)
