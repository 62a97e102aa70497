# minestat.py - A Minecraft server status checker
# Copyright (C) 2016-2023 Lloyd Dilley, Felix Ern (MindSolve)
# http://www.dilley.me/
#
# Secondary optimization and customization are carried out by @molanp.
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program; if not, write to the Free Software Foundation, Inc.,
# 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301 USA.

"""
Message of the day parsing.

Servers send their MOTD either as a legacy string with `§` formatting codes
(Bedrock, old Java servers) or as a JSON chat component (Java 1.7+). Both are
flattened into a list of styled `MotdSegment`s, which are then rendered as
raw `§`-coded text, plain text and HTML.
"""

from dataclasses import dataclass, replace
import html
import json
import re

from .types import MOTD

COLOR_CODES = {
    "0": ("black", "#000000"),
    "1": ("dark_blue", "#0000AA"),
    "2": ("dark_green", "#00AA00"),
    "3": ("dark_aqua", "#00AAAA"),
    "4": ("dark_red", "#AA0000"),
    "5": ("dark_purple", "#AA00AA"),
    "6": ("gold", "#FFAA00"),
    "7": ("gray", "#AAAAAA"),
    "8": ("dark_gray", "#555555"),
    "9": ("blue", "#5555FF"),
    "a": ("green", "#55FF55"),
    "b": ("aqua", "#55FFFF"),
    "c": ("red", "#FF5555"),
    "d": ("light_purple", "#FF55FF"),
    "e": ("yellow", "#FFFF55"),
    "f": ("white", "#FFFFFF"),
    # Bedrock only
    "g": ("minecoin_gold", "#DDD605"),
    "h": ("material_quartz", "#E3D4D1"),
    "i": ("material_iron", "#CECACA"),
    "j": ("material_netherite", "#443A3B"),
    "p": ("material_gold", "#DEB12D"),
    "q": ("material_emerald", "#47A036"),
    "s": ("material_diamond", "#2CBAA8"),
    "t": ("material_lapis", "#21497B"),
    "u": ("material_amethyst", "#9A5CC6"),
}

FORMAT_CODES = {
    "k": "obfuscated",
    "l": "bold",
    "m": "strikethrough",
    "n": "underlined",
    "o": "italic",
}

RESET_CODE = "r"

NAMED_COLORS = {name: hex_color for name, hex_color in COLOR_CODES.values()}
_HEX_TO_CODE = {hex_color: code for code, (_, hex_color) in COLOR_CODES.items()}


@dataclass(frozen=True)
class MotdSegment:
    text: str = ""
    color: str | None = None
    """`#RRGGBB`"""
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    strikethrough: bool = False
    obfuscated: bool = False

    def style(self) -> "MotdSegment":
        return replace(self, text="")


def _parse_legacy(text: str, base: MotdSegment) -> list[MotdSegment]:
    segments = []
    style = base.style()
    current = ""
    i = 0
    while i < len(text):
        if text[i] == "§" and i + 1 < len(text):
            code = text[i + 1].lower()
            if current:
                segments.append(replace(style, text=current))
                current = ""
            if code in COLOR_CODES:
                # a color code resets all formatting
                style = MotdSegment(color=COLOR_CODES[code][1])
            elif code in FORMAT_CODES:
                style = replace(style, **{FORMAT_CODES[code]: True})
            elif code == RESET_CODE:
                style = MotdSegment()
            i += 2
            continue
        current += text[i]
        i += 1

    if current:
        segments.append(replace(style, text=current))
    return segments


def _component_color(color) -> str | None:
    if not isinstance(color, str):
        return None
    if re.fullmatch(r"#(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})", color):
        hex_color = color[1:]
        if len(hex_color) == 3:
            hex_color = "".join(c * 2 for c in hex_color)
        return "#" + hex_color.upper()
    return NAMED_COLORS.get(color)


def _parse_component(component, parent: MotdSegment) -> list[MotdSegment]:
    if isinstance(component, str):
        return _parse_legacy(component, parent)
    if isinstance(component, list):
        segments = []
        for item in component:
            segments += _parse_component(item, parent)
        return segments
    if not isinstance(component, dict):
        return _parse_legacy(str(component), parent) if component is not None else []

    style = parent.style()
    color = _component_color(component.get("color"))
    if color is not None:
        style = replace(style, color=color)
    for key in ("bold", "italic", "underlined", "strikethrough", "obfuscated"):
        if isinstance(component.get(key), bool):
            style = replace(style, **{key: component[key]})
    # some servers send "underline" instead of "underlined"
    if isinstance(component.get("underline"), bool):
        style = replace(style, underlined=component["underline"])

    text = component.get("text", component.get("translate", ""))
    segments = _parse_legacy(str(text), style)
    for extra in component.get("extra", []) or []:
        segments += _parse_component(extra, style)
    return segments


def parse_motd(value) -> list[MotdSegment]:
    """
    Flatten a MOTD into styled segments.

    :param value: The raw MOTD, either as a string, a dict or list (from "json.loads()").
        Strings that hold a JSON chat component are decoded first.
    """
    if isinstance(value, str) and value.lstrip().startswith(("{", "[")):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            pass
    return _parse_component(value, MotdSegment())


def _style_codes(segment: MotdSegment) -> str:
    codes = ""
    if segment.color is not None and segment.color in _HEX_TO_CODE:
        codes += "§" + _HEX_TO_CODE[segment.color]
    for code, attribute in FORMAT_CODES.items():
        if getattr(segment, attribute):
            codes += "§" + code
    return codes


def format_raw(segments: list[MotdSegment]) -> str:
    """Render segments back into a `§`-coded string."""
    result = ""
    previous = ""
    for segment in segments:
        codes = _style_codes(segment)
        if codes != previous:
            if previous:
                result += "§" + RESET_CODE
            result += codes
            previous = codes
        result += segment.text
    return result


def clean(segments: list[MotdSegment]) -> str:
    return "".join(segment.text for segment in segments)


def to_html(segments: list[MotdSegment]) -> str:
    result = ""
    for segment in segments:
        text = html.escape(segment.text).replace("\n", "<br>")
        styles = []
        if segment.color is not None:
            styles.append(f"color:{segment.color};")
        if segment.bold:
            styles.append("font-weight:bold;")
        if segment.italic:
            styles.append("font-style:italic;")
        decorations = []
        if segment.underlined:
            decorations.append("underline")
        if segment.strikethrough:
            decorations.append("line-through")
        if decorations:
            styles.append(f"text-decoration:{' '.join(decorations)};")

        if styles:
            result += f'<span style="{"".join(styles)}">{text}</span>'
        else:
            result += text
    return result


def format_motd(value) -> MOTD:
    """Parse a raw MOTD (string or chat component) into its raw, clean and HTML renditions."""
    segments = parse_motd(value)
    if isinstance(value, str) and "§" in value:
        raw = value
    else:
        raw = format_raw(segments)
    return MOTD(raw=raw, clean=clean(segments), html=to_html(segments))


def strip_formatting(value) -> str:
    """
    Function for stripping all formatting codes from a motd. Supports Json Chat components (as dict) and
    the legacy formatting codes.
    """
    return clean(parse_motd(value))
