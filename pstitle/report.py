from dataclasses import dataclass, field
from typing import TextIO

from rich.style import Style

from pstitle.schemas import Record
from pstitle.styles import Palette, apply


BORDER = "------------------------------------------------------------"
LABEL_WIDTH = 35
COUNT_WIDTH = 7


@dataclass
class Report:

    # Records already in the output before this run started.
    skipped: int = 0
    successful: int = 0
    info_missing: int = 0
    failed: list[tuple[Record, str]] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def observed(self) -> int:
        return self.successful + self.info_missing + len(self.failed)


def _summary_line(palette: Palette, label: str, count: int, highlight: Style | None) -> str:
    padded_label = apply(palette.report_label, f"{label:<{LABEL_WIDTH}}")
    padded_count = f"{count:>{COUNT_WIDTH}}"
    if highlight is not None and count > 0:
        padded_count = apply(highlight, padded_count)
    return f"{padded_label} {padded_count}"


def render_report(report: Report, palette: Palette) -> str:
    lines = [
        "",
        apply(palette.report_border, BORDER),
        apply(palette.report_title, "# Report"),
        "",
        apply(palette.report_title, "## Summary"),
        "",
        _summary_line(palette, "* Records processed:", report.successful, palette.report_item_success),
        _summary_line(
            palette,
            "* Records processed (missing info):",
            report.info_missing,
            palette.report_item_partial_success,
        ),
        _summary_line(palette, "* Records with errors:", report.failed_count, palette.report_item_failure),
        _summary_line(palette, "* Records skipped (pre-existing):", report.skipped, None),
    ]

    if report.failed:
        lines.extend(
            [
                "",
                apply(palette.report_title_error, "## Errors"),
                "",
                "{row_index} | {title_number} | {error}".format(
                    row_index=apply(palette.report_label, f"{'#':>5}"),
                    title_number=apply(palette.report_label, f"{'title_number':<13}"),
                    error=apply(palette.report_label, f"{'error':<30}"),
                ),
                "----- | ------------- | ------------------------------",
            ]
        )
        for record, message in report.failed:
            lines.append(
                "{row_index:>5} | {title_number} | {error}".format(
                    row_index=record.index,
                    title_number=apply(palette.report_error_item, f"{record.title_number:<13}"),
                    error=apply(palette.report_error_message, f"{message:<30}"),
                )
            )

    lines.append(apply(palette.report_border, BORDER))
    return "\n".join(lines) + "\n"


def write_report(text: str, stream: TextIO) -> None:
    stream.write(text)
    stream.flush()
