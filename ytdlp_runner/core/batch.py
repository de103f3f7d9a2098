"""
Runs a single-URL coroutine over many URLs, sequentially or with bounded
concurrency, isolating failures per item.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from ytdlp_runner.exceptions import ConfigurationError, YtDlpError
from ytdlp_runner.models.stats import BatchResult

log = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 3


class BatchExecutor:
    """
    Dispatches ``run_one(url)`` for every URL of a batch.

    A failing item is logged and recorded in the ``BatchResult``; it never
    stops the items after it, and never cancels items running beside it.
    Cancellation of the batch itself propagates.
    """

    def __init__(self, run_one: Callable[[str], Awaitable[Any]]):
        """
        Args:
            run_one: Coroutine function executing a single URL.
        """
        self.run_one = run_one

    @staticmethod
    def _validate(urls: Iterable[str]) -> list[str]:
        url_list = list(urls or [])
        if not url_list:
            log.error("No URLs provided for batch download")
            raise ConfigurationError("No URLs provided for batch download")
        return url_list

    async def _run_item(self, url: str, result: BatchResult) -> None:
        result.stats.item_started()
        success = False
        try:
            await self.run_one(url)
            result.succeeded.append(url)
            success = True
        except YtDlpError as e:
            log.error(f"Skipping URL {url} due to error: {e}")
            result.failed[url] = str(e)
        except Exception as e:
            log.error(
                f"Skipping URL {url} due to an unexpected error: {e}",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            result.failed[url] = str(e)
        finally:
            result.stats.item_finished(success)

    async def run_sequential(self, urls: Iterable[str]) -> BatchResult:
        """Runs each URL in turn, continuing past any single-item failure."""
        url_list = self._validate(urls)
        result = BatchResult()
        result.stats.total = len(url_list)
        for url in url_list:
            await self._run_item(url, result)
        return result

    async def run_concurrent(
        self, urls: Iterable[str], max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    ) -> BatchResult:
        """
        Runs URLs concurrently, never more than ``max_concurrency`` at a time.
        """
        if max_concurrency < 1:
            raise ConfigurationError("Max concurrency must be at least 1.")
        url_list = self._validate(urls)
        result = BatchResult()
        result.stats.total = len(url_list)
        semaphore = asyncio.Semaphore(max_concurrency)

        log.debug(
            f"Batch running {len(url_list)} URLs, at most {max_concurrency} at once..."
        )

        async def run_single(url: str) -> None:
            async with semaphore:
                await self._run_item(url, result)

        tasks = [run_single(url) for url in url_list]
        await asyncio.gather(*tasks)
        return result
