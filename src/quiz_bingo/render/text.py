"""Font lookup, LaTeX-to-text conversion and line wrapping for the renderers."""

from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from typing import List, Optional

from PIL import ImageFont

logger = logging.getLogger(__name__)

_FONT_CANDIDATES = {
    True: [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
        "C:/Windows/Fonts/arialbd.ttf",
    ],
    False: [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/System/Library/Fonts/Supplemental/Arial.ttf",
        "C:/Windows/Fonts/arial.ttf",
    ],
}


@lru_cache(maxsize=None)
def find_font_path(bold: bool = False) -> Optional[str]:
    override = os.environ.get("QUIZ_BINGO_FONT_BOLD" if bold else "QUIZ_BINGO_FONT")
    if override and os.path.exists(override):
        return override
    for path in _FONT_CANDIDATES[bold]:
        if os.path.exists(path):
            return path
    return None


@lru_cache(maxsize=64)
def load_font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    path = find_font_path(bold)
    if path:
        return ImageFont.truetype(path, size)
    logger.debug("No TrueType font found, using Pillow's built-in font at %dpx", size)
    return ImageFont.load_default(size=size)


_LATEX_SYMBOLS = {
    r"\times": "×",
    r"\cdot": "·",
    r"\div": "÷",
    r"\pm": "±",
    r"\leq": "≤",
    r"\le": "≤",
    r"\geq": "≥",
    r"\ge": "≥",
    r"\neq": "≠",
    r"\approx": "≈",
    r"\infty": "∞",
    r"\pi": "π",
    r"\alpha": "α",
    r"\beta": "β",
    r"\theta": "θ",
    r"\degree": "°",
    r"\circ": "°",
    r"\%": "%",
    r"\,": " ",
    r"\;": " ",
    r"\left": "",
    r"\right": "",
}
_SUPERSCRIPTS = str.maketrans("0123456789+-n", "⁰¹²³⁴⁵⁶⁷⁸⁹⁺⁻ⁿ")
_SUBSCRIPTS = str.maketrans("0123456789", "₀₁₂₃₄₅₆₇₈₉")

_FRAC = re.compile(r"\\[dt]?frac\{([^{}]*)\}\{([^{}]*)\}")
_SQRT = re.compile(r"\\sqrt\{([^{}]*)\}")
_SUP = re.compile(r"\^\{([^{}]*)\}|\^(\w)")
_SUB = re.compile(r"_\{([^{}]*)\}|_(\w)")
_TEXT = re.compile(r"\\(?:text|mathrm|mathbf)\{([^{}]*)\}")
_COMMAND = re.compile(r"\\([A-Za-z]+)")


def _script(match: re.Match, table: dict) -> str:
    body = match.group(1) if match.group(1) is not None else match.group(2)
    if body and all(ord(ch) in table for ch in body):
        return body.translate(table)
    marker = "^" if table is _SUPERSCRIPTS else "_"
    return f"{marker}{body}" if len(body) == 1 else f"{marker}({body})"


def latex_to_text(latex: str) -> str:
    """Best-effort plain-text rendition of the LaTeX subset used on cards."""
    text = _TEXT.sub(r"\1", latex)
    for _ in range(3):  # nested fractions
        text = _FRAC.sub(r"(\1)/(\2)", text)
    text = _SQRT.sub(r"√(\1)", text)
    for command in sorted(_LATEX_SYMBOLS, key=len, reverse=True):
        text = text.replace(command, _LATEX_SYMBOLS[command])
    text = _SUP.sub(lambda m: _script(m, _SUPERSCRIPTS), text)
    text = _SUB.sub(lambda m: _script(m, _SUBSCRIPTS), text)
    text = _COMMAND.sub(r"\1", text)
    text = re.sub(r"\((\w+)\)/\((\w+)\)", r"\1/\2", text)
    return text.replace("{", "").replace("}", "").strip()


def display_text(value: str, is_math: bool) -> str:
    return latex_to_text(value) if is_math else value


def wrap_text(text: str, font: ImageFont.ImageFont, max_width: float) -> List[str]:
    """Greedy word wrap; words wider than the box are broken by characters."""
    lines: List[str] = []
    for paragraph in text.splitlines() or [""]:
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if font.getlength(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            current = ""
            for ch in word:
                if font.getlength(current + ch) > max_width and current:
                    lines.append(current)
                    current = ""
                current += ch
        lines.append(current)
    return lines
