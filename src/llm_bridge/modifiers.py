"""Filename-modifier expansion for hosts without their own.

Supports ``%`` (current file as given) followed by any chain of ``:p``
(absolute path), ``:h`` (head), ``:t`` (tail), ``:r`` (root) and ``:e``
(extension). Text after the modifier chain is kept as-is, so ``"%"``
expands inside quotes.
"""

from __future__ import annotations

import os
import re

_TOKEN_PATTERN = re.compile(r"%((?::[a-z])*)(.*)", re.DOTALL)


def expand_filename_modifiers(token: str, current_file: str) -> str:
    """Expand a single ``%``-token against ``current_file``.

    Unknown modifiers or a missing current file leave the token unchanged.
    """

    if not current_file:
        return token
    match = _TOKEN_PATTERN.fullmatch(token)
    if match is None:
        return token
    chain, rest = match.group(1), match.group(2)
    path = current_file
    for modifier in chain[1::2]:
        expanded = _apply(modifier, path)
        if expanded is None:
            return token
        path = expanded
    return path + rest


def _apply(modifier: str, path: str) -> str | None:
    if modifier == "p":
        return os.path.abspath(path)
    if modifier == "h":
        head = os.path.dirname(path.rstrip("/")) if path != "/" else "/"
        return head or "."
    if modifier == "t":
        return os.path.basename(path.rstrip("/"))
    if modifier == "r":
        root, _ext = _split_extension(path)
        return root
    if modifier == "e":
        _root, ext = _split_extension(path)
        return ext
    return None


def _split_extension(path: str) -> tuple[str, str]:
    root, ext = os.path.splitext(path)
    return root, ext[1:]
