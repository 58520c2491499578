#!/usr/bin/env python3
"""
# mdproc
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

store.py

Access to the text_class rows the worker consumes.

The database belongs to the wiki backend: it creates grades, courses and
text classes, sets text_class.file_name when a teacher uploads markdown,
and resets proc_file_name to '' on re-upload. The worker only ever reads
pending rows and sets proc_file_name once a processed file is on disk.

Each statement runs on its own; nothing here holds a transaction across
documents.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import List, Optional

from mdproc.errors import store_failed_error

log = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS "grade" (
    "id"    INTEGER PRIMARY KEY AUTOINCREMENT UNIQUE,
    "name"  TEXT NOT NULL,
    "description"   TEXT
);
CREATE TABLE IF NOT EXISTS "course" (
    "id"    INTEGER PRIMARY KEY AUTOINCREMENT UNIQUE,
    "grade_id"  INTEGER NOT NULL,
    "name"  TEXT NOT NULL,
    "description"   TEXT,
    FOREIGN KEY("grade_id") REFERENCES "grade"("id") ON DELETE CASCADE
);
CREATE TABLE IF NOT EXISTS "text_class" (
    "id"    INTEGER,
    "course_id" INTEGER NOT NULL,
    "file_name" TEXT DEFAULT '',
    "proc_file_name"    TEXT DEFAULT '',
    "title" TEXT NOT NULL,
    FOREIGN KEY("course_id") REFERENCES "course"("id") ON DELETE CASCADE,
    PRIMARY KEY("id")
);
"""

PENDING_QUERY = """
    SELECT text_class.id AS class_id, course_id, grade_id, file_name
    FROM text_class
    JOIN course ON course.id = text_class.course_id
    JOIN grade ON course.grade_id = grade.id
    WHERE COALESCE(text_class.proc_file_name, '') = ''
      AND COALESCE(text_class.file_name, '') <> ''
    ORDER BY text_class.id
"""

MARK_PROCESSED_QUERY = """
    UPDATE text_class
    SET proc_file_name = ?
    WHERE id = ?
"""


@dataclass(frozen=True)
class PendingDocument:
    """A text class with an uploaded file and no processed file yet."""
    class_id: int
    course_id: int
    grade_id: int
    source_path: str


class TextClassStore:
    """sqlite access for the synchronizer"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                conn = sqlite3.connect(self.db_path)
                conn.execute("PRAGMA foreign_keys = ON")
            except sqlite3.Error as e:
                raise store_failed_error("open the database", self.db_path, e) from e
            self._conn = conn
        return self._conn

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "TextClassStore":
        return self

    def __exit__(self, *exc):
        self.close()

    # -------------------------------------------------------------------------
    # Pipeline statements
    # -------------------------------------------------------------------------

    def pending_documents(self) -> List[PendingDocument]:
        """
        All documents waiting to be processed.

        The whole result is read before returning so that updates made
        while processing cannot disturb the cursor.
        """
        conn = self.connect()
        try:
            rows = conn.execute(PENDING_QUERY).fetchall()
        except sqlite3.Error as e:
            raise store_failed_error("read pending text classes", self.db_path, e) from e
        return [
            PendingDocument(
                class_id=int(class_id),
                course_id=int(course_id),
                grade_id=int(grade_id),
                source_path=source_path,
            )
            for class_id, course_id, grade_id, source_path in rows
        ]

    def mark_processed(self, class_id: int, processed_path: str) -> bool:
        """
        Record the processed file for a text class.

        Returns:
            True when exactly one row was updated
        """
        conn = self.connect()
        try:
            with conn:
                cursor = conn.execute(MARK_PROCESSED_QUERY, (processed_path, class_id))
        except sqlite3.Error as e:
            raise store_failed_error("update text class", self.db_path, e) from e
        if cursor.rowcount != 1:
            log.warning("Unable to update text class %s (%s rows matched)",
                        class_id, cursor.rowcount)
            return False
        return True

    # -------------------------------------------------------------------------
    # Schema and seeding, for local setups and tests
    # -------------------------------------------------------------------------

    def ensure_schema(self):
        conn = self.connect()
        try:
            with conn:
                conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise store_failed_error("create the schema", self.db_path, e) from e

    def _insert(self, query: str, params: tuple) -> int:
        conn = self.connect()
        try:
            with conn:
                cursor = conn.execute(query, params)
        except sqlite3.Error as e:
            raise store_failed_error("insert row", self.db_path, e) from e
        return cursor.lastrowid

    def add_grade(self, name: str, description: str = "") -> int:
        return self._insert(
            'INSERT INTO grade (name, description) VALUES (?, ?)',
            (name, description),
        )

    def add_course(self, grade_id: int, name: str, description: str = "") -> int:
        return self._insert(
            'INSERT INTO course (grade_id, name, description) VALUES (?, ?, ?)',
            (grade_id, name, description),
        )

    def add_text_class(self, course_id: int, title: str, file_name: str = "",
                       proc_file_name: str = "", class_id: Optional[int] = None) -> int:
        return self._insert(
            'INSERT INTO text_class (id, course_id, file_name, proc_file_name, title) '
            'VALUES (?, ?, ?, ?, ?)',
            (class_id, course_id, file_name, proc_file_name, title),
        )

    def processed_path(self, class_id: int) -> Optional[str]:
        """Current proc_file_name of a text class (None if no such row)."""
        conn = self.connect()
        try:
            row = conn.execute(
                'SELECT proc_file_name FROM text_class WHERE id = ?', (class_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise store_failed_error("read text class", self.db_path, e) from e
        return row[0] if row else None
