"""Extraction of executable fenced code blocks from model output."""

from __future__ import annotations

import re
from dataclasses import dataclass

from switchboard.core.types import CodeLanguage

FENCE_PATTERN = re.compile(r"```([\w+#.-]*)[ \t]*\n(.*?)```", re.DOTALL)

_LANGUAGE_ALIASES = {
    "": CodeLanguage.PYTHON,
    "python": CodeLanguage.PYTHON,
    "py": CodeLanguage.PYTHON,
    "javascript": CodeLanguage.NODE,
    "js": CodeLanguage.NODE,
    "node": CodeLanguage.NODE,
    "nodejs": CodeLanguage.NODE,
}


@dataclass(frozen=True)
class CodeBlock:
    language: CodeLanguage
    code: str


def extract_code_blocks(text: str) -> list[CodeBlock]:
    """Return runnable fenced blocks in order of appearance.

    Unlabeled fences run as python. Fences with any other label, and fences
    with an empty body, are skipped.
    """
    blocks: list[CodeBlock] = []
    for match in FENCE_PATTERN.finditer(text):
        language = _LANGUAGE_ALIASES.get(match.group(1).lower())
        code = match.group(2).strip()
        if language is None or not code:
            continue
        blocks.append(CodeBlock(language=language, code=code))
    return blocks
