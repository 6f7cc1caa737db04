"""Outbound client for the GitHub repository tags API."""
from __future__ import annotations

import logging
from typing import List, Optional, Protocol
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from errors import DecodeFailure, TransportFailure, UpstreamNotFound
from responses import RepoTag

logger = logging.getLogger("tags_edge.upstream")

DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_USER_AGENT = "request"
DEFAULT_TIMEOUT = 10.0

_tags_adapter = TypeAdapter(List[RepoTag])


class UpstreamClient(Protocol):
    def fetch_tags(self, username: str, repo: str) -> List[RepoTag]:
        """Return the repo's tags in upstream order or raise an ``UpstreamFailure``."""
        ...


def tags_url(base_url: str, username: str, repo: str) -> str:
    # Path segments are fully escaped so "/" or "?" in a value can't reshape the upstream path
    return f"{base_url.rstrip('/')}/repos/{quote(username, safe='')}/{quote(repo, safe='')}/tags"


class GitHubTagsClient:
    """
    Single-attempt GET against ``/repos/{username}/{repo}/tags``.

    One ``httpx.Client`` is shared by all worker threads; call ``close()`` on
    shutdown. No retries.

    Args:
        base_url:
            Root of the upstream API.
        user_agent:
            Sent on every request; the upstream refuses anonymous agents.
        timeout:
            Per-request timeout in seconds.
        transport:
            Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url
        # Renamed or transferred repos answer 301 with the new location
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    def fetch_tags(self, username: str, repo: str) -> List[RepoTag]:
        url = tags_url(self.base_url, username, repo)
        try:
            response = self._client.get(url)
        except httpx.DecodingError as e:
            # Broken Content-Encoding: the response arrived but its body is unreadable
            logger.warning("upstream body undecodable url=%s", url)
            raise DecodeFailure(str(e)) from e
        except httpx.RequestError as e:
            logger.warning("upstream request failed url=%s error=%s", url, type(e).__name__)
            raise TransportFailure(str(e)) from e

        if response.status_code == 404:
            logger.info("upstream not found url=%s", url)
            raise UpstreamNotFound(url)

        try:
            return _tags_adapter.validate_json(response.content)
        except ValidationError as e:
            logger.warning(
                "upstream body rejected url=%s status=%s errors=%s",
                url,
                response.status_code,
                e.error_count(),
            )
            raise DecodeFailure(f"unexpected tags payload (status {response.status_code})") from e

    def close(self) -> None:
        self._client.close()
