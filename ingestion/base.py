"""
Abstract base class for river data sources
"""

from abc import ABC, abstractmethod
from typing import List, Optional
import logging

import httpx
from bs4 import BeautifulSoup

from core.config import settings
from core.exceptions import FetchError
from schemas.river import RiverRecord

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml",
}


class SourceAdapter(ABC):
    """
    Abstract base class for all river data sources.

    Responsibilities:
    - HTTP fetching with a fixed per-request timeout
    - Mapping transport failures and non-2xx statuses onto FetchError
    - HTML parsing

    Subclasses implement fetch(), returning zero or more RiverRecords.
    Adapters hold no state shared with other adapters, so several may run
    concurrently.
    """

    def __init__(
        self,
        source_name: str,
        mandatory: bool = False,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.source_name = source_name
        self.mandatory = mandatory
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self.transport = transport

    @abstractmethod
    async def fetch(self) -> List[RiverRecord]:
        """
        Fetch and parse the source.

        Returns:
            List of normalized records

        Raises:
            FetchError: If the source cannot be retrieved
        """
        pass

    def client(self) -> httpx.AsyncClient:
        """HTTP client for one fetch cycle"""
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers=DEFAULT_HEADERS,
            follow_redirects=True,
            transport=self.transport
        )

    async def get_page(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        """
        GET url and return the successful response.

        Raises:
            FetchError: On timeout, transport error or non-2xx status
        """
        logger.info(f"[{self.source_name}] GET {url}")

        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(
                f"Request timed out for {self.source_name}",
                context={"source_name": self.source_name, "url": url, "timeout": self.timeout},
                original_exception=e
            )
        except httpx.HTTPError as e:
            raise FetchError(
                f"Request failed for {self.source_name}",
                context={"source_name": self.source_name, "url": url},
                original_exception=e
            )

        if not response.is_success:
            raise FetchError(
                f"Unexpected status code {response.status_code} for {self.source_name}",
                context={
                    "source_name": self.source_name,
                    "url": url,
                    "status_code": response.status_code,
                    "response_body": response.text[:500]
                }
            )

        logger.debug(f"[{self.source_name}] {url} -> {response.status_code}")
        return response

    @staticmethod
    def parse_html(text: str) -> BeautifulSoup:
        return BeautifulSoup(text, "lxml")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(source_name={self.source_name!r}, mandatory={self.mandatory})"
