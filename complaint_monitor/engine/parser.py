"""Turn complaint listing markup into :class:`ComplaintRecord` objects."""

from __future__ import annotations

from datetime import datetime
from urllib.parse import urlparse

from selectolax.parser import HTMLParser, Node

from ..config import SelectorSet
from ..models import NO_DESCRIPTION, UNKNOWN, ComplaintRecord, utc_now


class ComplaintParser:
    """Extract complaint cards according to a configurable selector set.

    A page whose markup no longer matches the card selector yields an empty
    list; that is treated as "nothing new" rather than a failure.
    """

    def __init__(self, selectors: SelectorSet, base_url: str, max_complaints: int = 20) -> None:
        self.selectors = selectors
        self.base_url = base_url.rstrip("/")
        self.max_complaints = max_complaints

    def parse_listing(
        self,
        html: str,
        entity: str,
        collected_at: datetime | None = None,
    ) -> list[ComplaintRecord]:
        collected_at = collected_at or utc_now()
        tree = HTMLParser(html)
        records: list[ComplaintRecord] = []
        for index, card in enumerate(tree.css(self.selectors.card)):
            if index >= self.max_complaints:
                break
            record = self._parse_card(card, entity, collected_at)
            if record is not None:
                records.append(record)
        return records

    def parse_search_results(self, html: str) -> str | None:
        """Return the href of the first company in a search result page."""

        tree = HTMLParser(html)
        result = tree.css_first(self.selectors.search_result)
        if result is None:
            return None
        anchor = result.css_first(self.selectors.search_link)
        if anchor is None:
            return None
        href = (anchor.attributes.get("href") or "").strip()
        return href or None

    def complaint_link(self, external_id: str | None) -> str | None:
        if not external_id:
            return None
        return f"{self.base_url}/reclamacao/{external_id}"

    # ------------------------------------------------------------------
    def _parse_card(self, card: Node, entity: str, collected_at: datetime) -> ComplaintRecord | None:
        title = self._text(card, self.selectors.title)
        if not title:
            return None
        external_id = self._external_id(card)
        return ComplaintRecord(
            entity=entity,
            title=title,
            external_id=external_id,
            description=self._text(card, self.selectors.description) or NO_DESCRIPTION,
            status=self._text(card, self.selectors.status) or UNKNOWN,
            occurred_at=self._text(card, self.selectors.date),
            location=self._text(card, self.selectors.location) or UNKNOWN,
            link=self.complaint_link(external_id),
            collected_at=collected_at,
        )

    @staticmethod
    def _text(card: Node, selector: str) -> str:
        node = card.css_first(selector)
        if node is None:
            return ""
        return node.text(separator=" ", strip=True).strip()

    def _external_id(self, card: Node) -> str | None:
        anchor = card.css_first(self.selectors.link)
        if anchor is None:
            return None
        href = (anchor.attributes.get("href") or "").strip()
        if not href:
            return None
        segment = urlparse(href).path.rstrip("/").rsplit("/", 1)[-1]
        return segment or None


__all__ = ["ComplaintParser"]
