"""WebLoader: fetches pages over HTTP and turns them into plain-text documents."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import List, Optional, Sequence

import requests
from bs4 import BeautifulSoup
from bs4.dammit import EncodingDetector, UnicodeDammit
from langchain_core.documents import Document

logger = logging.getLogger(__name__)

_STRIPPED_TAGS = ["script", "style", "noscript", "template", "svg"]

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9,*/*;q=0.8",
    "User-Agent": "WebsiteQueryAssistant/0.1",
}


class WebLoader:
    """Loads one document per URL; each worker thread gets its own `requests.Session`."""

    def __init__(self, *, request_timeout: int = 30, session: Optional[requests.Session] = None) -> None:
        self._timeout = request_timeout
        self._shared_session = session
        if session is not None:
            session.headers.update(DEFAULT_HEADERS)
        self._local = threading.local()

    async def load(self, urls: Sequence[str]) -> List[Document]:
        documents: List[Document] = []
        for url in urls:
            documents.append(await asyncio.to_thread(self._load_one, url))
        return documents

    def _session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(DEFAULT_HEADERS)
            self._local.session = session
        return session

    def _load_one(self, url: str) -> Document:
        logger.info("Fetching %s", url)
        try:
            response = self._session().get(url, timeout=self._timeout)
        except requests.exceptions.RequestException as exc:
            logger.exception("Request for %s failed: %s", url, exc)
            raise

        logger.info("Fetched %s with status %s", url, response.status_code)
        if response.status_code >= 400:
            logger.error("HTTP error while loading %s: %s", url, response.status_code)
            response.raise_for_status()

        content_type = response.headers.get("Content-Type", "")
        if "html" not in content_type and content_type:
            if "charset" not in content_type.lower():
                response.encoding = response.apparent_encoding
            return Document(page_content=response.text, metadata={"url": url, "title": url})
        if "charset" in content_type.lower():
            markup = response.text
        else:
            markup = decode_html(response.content)
        title, text = extract_text(markup)
        return Document(page_content=text, metadata={"url": url, "title": title or url})


def decode_html(content: bytes) -> str:
    """Decode HTML bytes served without a charset: <meta> declaration first, then UTF-8."""

    declared = EncodingDetector.find_declared_encoding(content, is_html=True)
    candidates = [declared, "utf-8"] if declared else ["utf-8"]
    dammit = UnicodeDammit(content, known_definite_encodings=candidates, is_html=True)
    return dammit.unicode_markup or content.decode("utf-8", errors="replace")


def extract_text(html: str) -> tuple[str, str]:
    """Return `(title, body_text)` for an HTML page."""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_STRIPPED_TAGS):
        tag.decompose()
    title = soup.title.get_text(strip=True) if soup.title else ""
    body = soup.body or soup
    lines = [line.strip() for line in body.get_text(separator="\n").splitlines()]
    return title, "\n".join(line for line in lines if line)
