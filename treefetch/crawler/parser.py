"""
HTML parser for extracting outbound resource links.
"""

import logging
import re
from typing import List

from bs4 import BeautifulSoup


ABSOLUTE_URL_PATTERN = re.compile(r'^https?://', re.IGNORECASE)

# Anchors and images inside the body, matched in document order
LINK_SELECTOR = 'body a[href], body img[src]'


class ContentParser:
    """
    Extracts absolute http(s) links from HTML.

    Relative references and other schemes are dropped without attempting any
    base-URL resolution. Duplicates are kept and order follows the document.
    """

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)

    def extract_links(self, html_content: str) -> List[str]:
        """Return absolute anchor and image URLs found in ``html_content``."""
        links = self._extract_links(BeautifulSoup(html_content, self.features))
        self.logger.debug(f"Extracted {len(links)} links")
        return links

    def _extract_links(self, soup: BeautifulSoup) -> List[str]:
        links = []

        for element in soup.select(LINK_SELECTOR):
            attribute = 'href' if element.name == 'a' else 'src'
            value = element.get(attribute)
            if not value:
                continue

            value = value.strip()
            if ABSOLUTE_URL_PATTERN.match(value):
                links.append(value)

        return links


_default_parser = ContentParser()


def extract_links(html_content: str) -> List[str]:
    """Extract links with a shared lxml-backed parser."""
    return _default_parser.extract_links(html_content)
