"""
Fetcher: one outbound GET with bounded retries.

A failed attempt (transport error or non-2xx status) is retried after a
fixed backoff, default 2 retries 2 s apart. The inter-request politeness
delay is the caller's job. The Fetcher itself does not log.
"""

from typing import Optional

import httpx

from salary_ingest.core.errors import FetchError
from salary_ingest.utils.retry import RetryConfig, retry_with_backoff

USER_AGENT = "UM-Salary-Import/1.0 (educational; copying public data)"

DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF_S = 2.0
DEFAULT_TIMEOUT_S = 30.0


def _describe(exc: httpx.HTTPError, url: str) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}: {url}"
    return f"{exc.__class__.__name__}: {str(exc) or url}"


class Fetcher:
    """
    HTTP GET with retries.

    Usage:
        >>> with Fetcher() as fetcher:
        ...     html = fetcher.fetch_text("https://www.umsalary.info/dept_list.php")
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_s: float = DEFAULT_BACKOFF_S,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = USER_AGENT,
    ):
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_s, follow_redirects=True)
        self._headers = {"User-Agent": user_agent}
        self.retry_config = RetryConfig.fixed(max_retries=max_retries, delay=backoff_s)

    @property
    def attempts(self) -> int:
        return self.retry_config.max_retries + 1

    def _get(self, url: str) -> httpx.Response:
        def attempt() -> httpx.Response:
            response = self._client.get(url, headers=self._headers)
            response.raise_for_status()
            return response

        try:
            return retry_with_backoff(
                attempt,
                config=self.retry_config,
                retry_on=(httpx.HTTPError,),
                quiet=True,
            )
        except httpx.HTTPError as e:
            raise FetchError(
                f"{_describe(e, url)} (after {self.attempts} attempts)",
                url=url,
                attempts=self.attempts,
            ) from e

    def fetch_text(self, url: str) -> str:
        """
        Fetch a page and return its decoded text.

        Raises:
            FetchError: After all attempts failed
        """
        return self._get(url).text

    def fetch_bytes(self, url: str) -> bytes:
        """
        Fetch a binary document (the salary PDF).

        Raises:
            FetchError: After all attempts failed
        """
        return self._get(url).content

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
