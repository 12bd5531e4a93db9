"""Comment removal for score documents.

Two comment forms exist: ``% ...`` runs to the end of the line, and
``(* ... *)`` may span lines. Block comments are removed first, so a
``%`` inside a block comment never hides its closing ``*)``. Line breaks
after a line comment are kept.
"""

from __future__ import annotations

import re

RE_BLOCK_COMMENT = re.compile(r"\(\*.*?\*\)", re.DOTALL)
RE_LINE_COMMENT = re.compile(r"%[^\r\n]*")


def strip_block_comments(text: str) -> str:
    return RE_BLOCK_COMMENT.sub("", text)


def strip_line_comments(text: str) -> str:
    return RE_LINE_COMMENT.sub("", text)


def strip_comments(text: str) -> str:
    return strip_line_comments(strip_block_comments(text))
