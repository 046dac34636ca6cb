"""
Refresh operations behind the dashboard views.

The service holds one search client and hands it to a fresh BatchRunner per
call, so concurrent refreshes share nothing but the client.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from extraction.client import SearchModelClient, create_search_client
from extraction.models import EnrichmentTask
from extraction.runner import BatchRunner, ProgressCallback
from portfolio_radar.config import Settings, get_settings
from portfolio_radar.models import DividendData, HealthSectorData, PortfolioItem, StockData
from portfolio_radar.tasks import DividendCalendarTask, HealthSectorTask, PortfolioTask, StockRadarTask
from portfolio_radar.utils.logging import get_logger

logger = get_logger(__name__)


class EnrichmentService:
    """Entry point for the four refresh operations."""

    def __init__(
        self,
        client: SearchModelClient,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.settings = settings or get_settings()
        self._sleep = sleep
        self.last_runner: Optional[BatchRunner] = None

    def _runner(self, task: EnrichmentTask, max_batch_size: int, batch_delay: float) -> BatchRunner:
        runner = BatchRunner(
            client=self.client,
            task=task,
            max_batch_size=max_batch_size,
            batch_delay=batch_delay,
            sleep=self._sleep,
        )
        self.last_runner = runner
        return runner

    async def analyze_stocks(
        self,
        stocks: Sequence[StockData],
        on_progress: Optional[ProgressCallback] = None,
        max_batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
    ) -> List[StockData]:
        """Live prices, targets and a recommendation for each radar stock."""
        runner = self._runner(
            StockRadarTask(),
            self.settings.stocks_batch_size if max_batch_size is None else max_batch_size,
            self.settings.stocks_batch_delay if batch_delay is None else batch_delay,
        )
        return await runner.run(stocks, on_progress)

    async def fetch_dividends(
        self,
        companies: Sequence[Union[str, DividendData]],
        on_progress: Optional[ProgressCallback] = None,
        max_batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
    ) -> List[DividendData]:
        """Usual payment months; companies without an answer keep an empty list."""
        subjects = [DividendData(name=c) if isinstance(c, str) else c for c in companies]
        runner = self._runner(
            DividendCalendarTask(),
            self.settings.dividends_batch_size if max_batch_size is None else max_batch_size,
            self.settings.dividends_batch_delay if batch_delay is None else batch_delay,
        )
        return await runner.run(subjects, on_progress)

    async def analyze_health_sector(
        self,
        companies: Sequence[HealthSectorData],
        on_progress: Optional[ProgressCallback] = None,
        max_batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
    ) -> List[HealthSectorData]:
        """Price, target and buy signal for each defensive health stock."""
        runner = self._runner(
            HealthSectorTask(),
            self.settings.health_batch_size if max_batch_size is None else max_batch_size,
            self.settings.health_batch_delay if batch_delay is None else batch_delay,
        )
        return await runner.run(companies, on_progress)

    async def analyze_portfolio(
        self,
        items: Sequence[PortfolioItem],
        on_progress: Optional[ProgressCallback] = None,
        max_batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
    ) -> List[PortfolioItem]:
        """Action, EUR price, value and outlook per line, matched strictly by ISIN."""
        runner = self._runner(
            PortfolioTask(),
            self.settings.portfolio_batch_size if max_batch_size is None else max_batch_size,
            self.settings.portfolio_batch_delay if batch_delay is None else batch_delay,
        )
        analyzed = await runner.run(items, on_progress)

        if analyzed and not any(item.current_price is not None for item in analyzed):
            logger.warning("Analysis completed but no prices found")
        return analyzed


def create_enrichment_service(settings: Optional[Settings] = None) -> EnrichmentService:
    """Build a service with the search client the settings describe."""
    settings = settings or get_settings()
    return EnrichmentService(client=create_search_client(settings), settings=settings)
