"""Free Dictionary API client (https://dictionaryapi.dev/)."""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from wordy.errors import LookupNotFound, LookupTransportError

logger = logging.getLogger(__name__)

BASE_URL = "https://api.dictionaryapi.dev/api/v2/entries/en/"
DEFAULT_TIMEOUT = 10.0


def first_definition(entries: Any) -> Optional[str]:
    """First definition of the first meaning of the first entry, if any."""
    try:
        text = entries[0]["meanings"][0]["definitions"][0]["definition"]
    except (IndexError, KeyError, TypeError):
        return None
    return text.strip() if isinstance(text, str) and text.strip() else None


class DictionaryClient:
    """Looks up one short definition per word.

    Raises LookupNotFound (invalid word, 404, no definition) or
    LookupTransportError (network failure, other status codes, bad payload).
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self._session = session or requests.Session()

    def lookup(self, word: str) -> str:
        cleaned = word.strip().lower()
        if not cleaned:
            raise LookupNotFound("Invalid word provided", word=word)

        url = self.base_url + quote(cleaned)
        try:
            resp = self._session.get(url, timeout=self.timeout, headers={"Accept": "application/json"})
        except requests.RequestException as exc:
            logger.warning("Dictionary request failed: %s", exc)
            raise LookupTransportError(f"Failed to lookup word: {exc}") from exc

        if resp.status_code == 404:
            raise LookupNotFound("Word not found in dictionary", word=cleaned)
        if resp.status_code != 200:
            logger.warning("Dictionary returned status %d for %r", resp.status_code, cleaned)
            raise LookupTransportError(f"Server error: {resp.status_code}", status_code=resp.status_code)

        try:
            entries = resp.json()
        except ValueError as exc:
            raise LookupTransportError("Invalid response from server") from exc

        definition = first_definition(entries)
        if definition is None:
            raise LookupNotFound("No definition available for this word", word=cleaned)
        logger.debug("Definition of %r: %r", cleaned, definition)
        return definition
