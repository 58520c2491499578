#!/usr/bin/env python3

"""
paths.py - Storage path and servable URL conventions for mdproc

Every file the worker writes for a text class lives under

    {destination_root}assets/{grade}/{course}/{class}/

and is published as

    {base_path}{grade}/{course}/{class}/

The file server maps base_path onto destination_root + "assets/", so the
two layouts must stay in step. The processed document itself goes next
to the uploaded original:

    {destination_root}{grade}/{course}/{class}/processed_{name}
"""

import posixpath
from dataclasses import dataclass
from urllib.parse import urlparse

from mdproc.config_utils import SyncConfig

ASSETS_DIR_NAME = "assets/"
PROCESSED_PREFIX = "processed_"
RESOURCES_SUFFIX = "_resources/"
PAGE_SUFFIX = ".html"


def url_basename(url: str) -> str:
    """
    Last segment of the URL's path; query string and fragment ignored.

    Returns:
        "index" for URLs with an empty path, e.g. https://x.com/
    """
    path = urlparse(url).path.rstrip("/")
    return posixpath.basename(path) or "index"


def url_extension(url: str) -> str:
    """Extension of url_basename(url), including the dot ("" if none)."""
    return posixpath.splitext(url_basename(url))[1]


@dataclass(frozen=True)
class DocumentPaths:
    """Path conventions for one text class"""
    destination_root: str
    base_path: str
    class_id: int
    course_id: int
    grade_id: int

    @classmethod
    def for_document(cls, config: SyncConfig, class_id: int,
                     course_id: int, grade_id: int) -> "DocumentPaths":
        return cls(
            destination_root=config.destination_root,
            base_path=config.base_path,
            class_id=class_id,
            course_id=course_id,
            grade_id=grade_id,
        )

    @property
    def mid_path(self) -> str:
        return f"{self.grade_id}/{self.course_id}/{self.class_id}/"

    @property
    def prefix(self) -> str:
        return f"{self.class_id}_"

    @property
    def document_dir(self) -> str:
        return self.destination_root + self.mid_path

    @property
    def assets_dir(self) -> str:
        return self.destination_root + ASSETS_DIR_NAME + self.mid_path

    def processed_path(self, source_path: str) -> str:
        return self.document_dir + PROCESSED_PREFIX + posixpath.basename(source_path)

    # Top-level resources (linked directly from the markdown)

    def asset_name(self, basename: str) -> str:
        return self.prefix + basename

    def asset_path(self, basename: str) -> str:
        return self.assets_dir + self.asset_name(basename)

    def asset_url(self, basename: str) -> str:
        return self.base_path + self.mid_path + self.asset_name(basename)

    def page_path(self, basename: str) -> str:
        return self.asset_path(basename) + PAGE_SUFFIX

    def page_url(self, basename: str) -> str:
        return self.asset_url(basename) + PAGE_SUFFIX

    # Resources scraped out of a localized page

    def resources_folder(self, basename: str) -> str:
        return self.asset_name(basename) + RESOURCES_SUFFIX

    def resources_dir(self, basename: str) -> str:
        return self.assets_dir + self.resources_folder(basename)

    def resource_path(self, basename: str, name: str) -> str:
        return self.resources_dir(basename) + name

    def resource_url(self, basename: str, name: str) -> str:
        return self.base_path + self.mid_path + self.resources_folder(basename) + name
