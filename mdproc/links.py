#!/usr/bin/env python3
"""
# mdproc
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

links.py

Find the link targets referenced by a markdown text class.

Matches:
    [text](url)
    ![alt](url)
    [text](url "optional title")

Image links need no pattern of their own: the `!` simply precedes a
regular `[...](...)` match. Anything after the first whitespace inside
the parentheses is a title and is dropped.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List


# Non-greedy on both parts so that several links on one line stay apart
MARKDOWN_LINK_PATTERN = re.compile(r"\[.*?\]\((.*?)\)")


@dataclass(frozen=True)
class LinkReference:
    """A link target and the markdown text it was found in."""
    url: str
    raw: str


def extract_links(markdown_text: str) -> Iterator[LinkReference]:
    """
    Yield each distinct link target in order of first appearance.

    Calling again on the same text starts over; nothing is cached.
    """
    seen = set()
    for match in MARKDOWN_LINK_PATTERN.finditer(markdown_text):
        parts = match.group(1).split()
        if not parts:
            # [text]() has nothing to localize
            continue
        url = parts[0]
        if url in seen:
            continue
        seen.add(url)
        yield LinkReference(url=url, raw=match.group(0))


def extract_urls(markdown_text: str) -> List[str]:
    """List of distinct link targets, first occurrence first."""
    return [link.url for link in extract_links(markdown_text)]
