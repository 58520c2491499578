#!/usr/bin/env python3
"""
# mdproc
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

rewriter.py

Swap every localized URL in a document for its servable URL.

All keys are replaced in one left-to-right scan. At any position the
longest key wins, and replacement text is never scanned again, so a
servable URL that happens to contain another key is left alone.
"""

import re
from typing import Mapping


def build_pattern(mapping: Mapping[str, str]):
    """Compile one alternation of all non-empty keys, longest first."""
    keys = sorted((k for k in mapping if k), key=len, reverse=True)
    if not keys:
        return None
    return re.compile("|".join(re.escape(k) for k in keys))


def rewrite_document(text: str, mapping: Mapping[str, str]) -> str:
    """
    Replace every occurrence of each mapping key in text.

    Args:
        text: Original markdown
        mapping: Original URL -> servable URL

    Returns:
        The rewritten markdown (text itself when mapping is empty)
    """
    pattern = build_pattern(mapping)
    if pattern is None:
        return text
    return pattern.sub(lambda m: mapping[m.group(0)], text)
