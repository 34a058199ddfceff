import io

from pstitle.report import Report, render_report, write_report
from pstitle.schemas import Record
from pstitle.step_logic import RECORD_NOT_FOUND
from pstitle.styles import Palette, render_logo


def summary(label: str, count: int) -> str:
    return label.ljust(35) + " " + str(count).rjust(7)


def test_report_with_errors_renders_error_table() -> None:
    report = Report(skipped=0, successful=6, info_missing=3, failed=[(Record(0), RECORD_NOT_FOUND)])

    text = render_report(report, Palette.plain())

    expected = "\n".join(
        [
            "",
            "-" * 60,
            "# Report",
            "",
            "## Summary",
            "",
            summary("* Records processed:", 6),
            summary("* Records processed (missing info):", 3),
            summary("* Records with errors:", 1),
            summary("* Records skipped (pre-existing):", 0),
            "",
            "## Errors",
            "",
            "    # | title_number  | error" + " " * 25,
            "----- | ------------- | ------------------------------",
            "    0 | ABC123/00     | Could not find record information online.",
            "-" * 60,
        ]
    )
    assert text == expected + "\n"


def test_report_without_errors_has_no_error_section() -> None:
    report = Report(skipped=5)

    text = render_report(report, Palette.plain())

    assert "## Errors" not in text
    assert summary("* Records skipped (pre-existing):", 5) in text
    assert summary("* Records processed:", 0) in text
    assert text.endswith("-" * 60 + "\n")


def test_error_rows_keep_arrival_order() -> None:
    report = Report(failed=[(Record(66), "second"), (Record(33), "first")])

    lines = render_report(report, Palette.plain()).splitlines()
    rows = [line for line in lines if line.startswith("   ") and "ABC123/" in line]

    assert rows[0].startswith("   66 | ABC123/66")
    assert rows[1].startswith("   33 | ABC123/33")
    # Short messages are padded to the column width.
    assert rows[0].endswith("second".ljust(30))


def test_rendering_is_a_pure_read() -> None:
    report = Report(skipped=2, successful=1, failed=[(Record(33), RECORD_NOT_FOUND)])

    first = render_report(report, Palette.default())
    second = render_report(report, Palette.default())

    assert first == second
    assert report.observed == 2


def test_default_palette_styles_nonzero_counters_only() -> None:
    report = Report(successful=4)

    text = render_report(report, Palette.default())

    assert "\x1b[" in text
    zero_line = next(line for line in text.splitlines() if "missing info" in line)
    assert zero_line.endswith(" " * 6 + "0")


def test_write_report_flushes_text() -> None:
    stream = io.StringIO()

    write_report("hello\n", stream)

    assert stream.getvalue() == "hello\n"


def test_plain_logo_has_no_escape_codes() -> None:
    logo = render_logo(Palette.plain())

    assert "\x1b[" not in logo
    assert logo.splitlines()[3] == "|  _|___|_| |_|_| |_|___|"
