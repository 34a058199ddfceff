from dataclasses import dataclass
from typing import TextIO

from rich.style import Style


@dataclass(frozen=True)
class Palette:
    logo_left: Style
    logo_right: Style
    report_border: Style
    report_title: Style
    report_title_error: Style
    report_label: Style
    report_item_success: Style
    report_item_partial_success: Style
    report_item_failure: Style
    report_error_item: Style
    report_error_message: Style

    @classmethod
    def default(cls) -> "Palette":
        return cls(
            logo_left=Style(color="blue", bold=True),
            logo_right=Style(color="green", bold=True),
            report_border=Style(color="blue", bold=True),
            report_title=Style(color="cyan", bold=True),
            report_title_error=Style(color="red", bold=True),
            report_label=Style(bold=True),
            report_item_success=Style(color="green", bold=True),
            report_item_partial_success=Style(color="rgb(216,216,0)", bold=True),
            report_item_failure=Style(color="red", bold=True),
            report_error_item=Style.null(),
            report_error_message=Style(color="yellow"),
        )

    @classmethod
    def plain(cls) -> "Palette":
        null = Style.null()
        return cls(*([null] * 11))


def apply(style: Style, text: str) -> str:
    return style.render(text)


LOGO_LEFT = ["    ", " ___ ___", "| . |_ -", "|  _|___", "|_|     ", ""]
LOGO_RIGHT = [
    "     _   _ _   _",
    "| |_|_| |_| |___",
    "|  _| |  _| | -_|",
    "|_| |_|_| |_|___|",
    "",
    "",
]


def render_logo(palette: Palette) -> str:
    lines = [
        apply(palette.logo_left, left) + apply(palette.logo_right, right)
        for left, right in zip(LOGO_LEFT, LOGO_RIGHT)
    ]
    return "\n".join(lines) + "\n"


def write_logo(palette: Palette, stream: TextIO) -> None:
    stream.write(render_logo(palette))
    stream.flush()
