"""Fetch and parse complaint listings for one company."""

from __future__ import annotations

from urllib.parse import quote_plus, urljoin

import structlog

from ..config import GlobalConfig
from ..errors import InvalidArgument, NotFoundError
from ..infra import UserAgentPool
from ..models import ComplaintRecord
from .fetcher import FetchRequest, Fetcher
from .parser import ComplaintParser
from .slug import slugify


class ComplaintScraper:
    """Combine :class:`Fetcher` and :class:`ComplaintParser` for an entity.

    ``fetch`` goes straight to the listing page derived from the company
    slug. ``search`` is the fallback for names whose slug does not resolve:
    it queries the site search and follows the first company link.
    """

    def __init__(
        self,
        global_config: GlobalConfig,
        fetcher: Fetcher | None = None,
        parser: ComplaintParser | None = None,
        ua_pool: UserAgentPool | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.global_config = global_config
        self.base_url = global_config.base_url
        self.fetcher = fetcher or Fetcher(global_config, ua_pool)
        self.parser = parser or ComplaintParser(
            global_config.selectors,
            global_config.base_url,
            global_config.max_complaints,
        )
        self.logger = logger or structlog.get_logger("complaint_monitor.scraper")

    def close(self) -> None:
        self.fetcher.close()

    def listing_url(self, entity: str) -> str:
        slug = slugify(entity)
        if not slug:
            raise InvalidArgument(f"Company name '{entity}' has no usable characters")
        return f"{self.base_url}/empresa/{slug}/lista-reclamacoes/"

    def search_url(self, entity: str) -> str:
        return f"{self.base_url}/busca/?q={quote_plus(entity)}"

    def fetch(self, entity: str) -> list[ComplaintRecord]:
        url = self.listing_url(entity)
        self.logger.info("fetch_started", entity=entity, url=url)
        records = self.fetch_url(url, entity)
        self.logger.info("fetch_finished", entity=entity, url=url, count=len(records))
        return records

    def search(self, entity: str) -> list[ComplaintRecord]:
        url = self.search_url(entity)
        self.logger.info("search_started", entity=entity, url=url)
        response = self.fetcher.fetch(FetchRequest(url=url))
        href = self.parser.parse_search_results(response.text)
        if not href:
            raise NotFoundError(f"No company matching '{entity}' in search results", url=url)
        if not href.endswith("/"):
            href += "/"
        listing = urljoin(f"{self.base_url}/", href) + "lista-reclamacoes/"
        self.logger.info("search_resolved", entity=entity, url=listing)
        return self.fetch_url(listing, entity)

    def fetch_url(self, url: str, entity: str) -> list[ComplaintRecord]:
        response = self.fetcher.fetch(FetchRequest(url=url))
        records = self.parser.parse_listing(response.text, entity)
        if not records:
            self.logger.info("no_cards_matched", entity=entity, url=response.url)
        return records


__all__ = ["ComplaintScraper"]
