#!/usr/bin/env python3
"""
# mdproc
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

localizer.py

Download the resources a text class links to and work out the local URL
that replaces each link.

Two kinds of link:
- asset: the URL path has a file extension (a.png, notes.pdf, style.css).
  The body is saved verbatim as {class}_{name}.
- page: no extension (https://example.com/notes). The page is fetched,
  its stylesheets and images are downloaded into {class}_{name}_resources/
  as 0_style.css, 1_style.css, 2_image, ... and the page is saved as
  {class}_{name}.html with those references rewritten.

A link that cannot be fetched or saved is logged and left out of the
mapping, so the original URL stays in the document.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from mdproc.config_utils import SyncConfig
from mdproc.errors import (
    MdprocError,
    fetch_failed_error,
    write_failed_error,
)
from mdproc.paths import DocumentPaths, url_basename, url_extension

log = logging.getLogger(__name__)

PAGE = "page"
ASSET = "asset"

STYLESHEET_SELECTOR = 'link[rel="stylesheet"]'
STYLESHEET_SUFFIX = "_style.css"
IMAGE_SUFFIX = "_image"

HTML_PARSER = "lxml"
CHUNK_SIZE = 8192


# =============================================================================
# URL helpers
# =============================================================================

def is_relative(url: str) -> bool:
    """True for links without scheme and host (/img/a.png, a.png)."""
    parsed = urlparse(url)
    return parsed.scheme == "" and parsed.netloc == ""


def normalize_url(link: str, base: Optional[str] = None) -> str:
    """
    Turn a link as written into a URL that can be requested.

    Protocol-relative links (//cdn.example.com/x.css) get https:.
    Relative links are resolved against base when there is one; only
    scraped pages provide a base, markdown files have none.
    """
    if link.startswith("//"):
        link = "https:" + link
    if base is not None and is_relative(link):
        return urljoin(base, link)
    return link


def is_fetchable(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def classify(url: str) -> str:
    """PAGE when the URL path has no file extension, ASSET otherwise."""
    if url_extension(url) == "":
        return PAGE
    return ASSET


def make_session(user_agent: str) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session


# =============================================================================
# Localizer
# =============================================================================

class ResourceLocalizer:
    """
    Downloads resources with one shared HTTP session.

    The localizer itself holds no per-document state; call begin() for
    each document to get a LocalizationPass with a fresh mapping.
    """

    def __init__(self, config: SyncConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session if session is not None else make_session(config.user_agent)

    def begin(self, paths: DocumentPaths) -> "LocalizationPass":
        return LocalizationPass(self, paths)

    def fetch(self, url: str) -> requests.Response:
        """
        GET url, raising FetchError on network errors and non-2xx status.

        The response is streamed; callers close it.
        """
        try:
            response = self.session.get(
                url,
                stream=True,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise fetch_failed_error(url, e) from e
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            response.close()
            raise fetch_failed_error(url, e) from e
        return response

    def download(self, url: str, dest: Path) -> Path:
        """Fetch url and write the body verbatim to dest."""
        response = self.fetch(url)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with open(dest, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        except requests.RequestException as e:
            raise fetch_failed_error(url, e) from e
        except OSError as e:
            raise write_failed_error(dest, e) from e
        finally:
            response.close()
        return dest


class LocalizationPass:
    """URL mapping for one document during one synchronization pass."""

    def __init__(self, localizer: ResourceLocalizer, paths: DocumentPaths):
        self.localizer = localizer
        self.paths = paths
        self._mapping: Dict[str, str] = {}

    @property
    def mapping(self) -> Dict[str, str]:
        """Link as written -> servable URL, for every localized link."""
        return dict(self._mapping)

    def localize(self, link: str) -> Optional[str]:
        """
        Localize one link of the document.

        Returns:
            The servable URL, or None when the link was left as is.
        """
        if link in self._mapping:
            return self._mapping[link]

        try:
            url = normalize_url(link)
            fetchable = is_fetchable(url)
        except ValueError as e:
            log.warning("Malformed link, leaving as is: %s (%s)", link, e)
            return None
        if not fetchable:
            log.debug("Not a downloadable link, leaving as is: %s", link)
            return None

        try:
            if classify(url) == PAGE:
                servable = self._localize_page(url)
            else:
                servable = self._localize_asset(url)
        except MdprocError as e:
            log.error("Skipping resource %s: %s", link, e.short())
            return None

        self._mapping[link] = servable
        return servable

    def _localize_asset(self, url: str) -> str:
        basename = url_basename(url)
        dest = Path(self.paths.asset_path(basename))
        self.localizer.download(url, dest)
        log.info("Resource: %s created", dest)
        return self.paths.asset_url(basename)

    def _localize_page(self, url: str) -> str:
        basename = url_basename(url)
        response = self.localizer.fetch(url)
        try:
            body = response.content
        except requests.RequestException as e:
            raise fetch_failed_error(url, e) from e
        finally:
            response.close()

        soup = BeautifulSoup(body, HTML_PARSER)
        self._localize_page_assets(soup, url, basename)

        root = soup.html if soup.html is not None else soup
        dest = Path(self.paths.page_path(basename))
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_text(str(root), encoding="utf-8")
        except OSError as e:
            raise write_failed_error(dest, e) from e
        log.info("Processed web page written: %s", dest)
        return self.paths.page_url(basename)

    def _page_elements(self, soup: BeautifulSoup) -> List[Tuple[object, str, str]]:
        """Stylesheets first, then images, in document order."""
        elements = []
        for element in soup.select(STYLESHEET_SELECTOR):
            elements.append((element, "href", STYLESHEET_SUFFIX))
        for element in soup.find_all("img"):
            elements.append((element, "src", IMAGE_SUFFIX))
        return elements

    def _localize_page_assets(self, soup: BeautifulSoup, page_url: str, basename: str):
        """Download every stylesheet and image of a page, rewriting in place."""
        page_links: Dict[str, str] = {}
        count = 0
        for element, attribute, suffix in self._page_elements(soup):
            link = element.get(attribute)
            if not link:
                continue
            if link in page_links:
                element[attribute] = page_links[link]
                continue

            name = f"{count}{suffix}"
            dest = Path(self.paths.resource_path(basename, name))
            try:
                url = normalize_url(link, base=page_url)
            except ValueError as e:
                log.warning("Skipping malformed page asset %s: %s", link, e)
                continue
            try:
                self.localizer.download(url, dest)
            except MdprocError as e:
                log.warning("Skipping page asset %s: %s", link, e.short())
                continue

            servable = self.paths.resource_url(basename, name)
            page_links[link] = servable
            element[attribute] = servable
            count += 1
            log.info("Downloaded asset: %s", dest)
