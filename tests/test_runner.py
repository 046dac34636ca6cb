"""
Tests for the sequential batch runner.

The search model is replaced by a scripted fake and the inter-batch delay
by a recorder, so no test waits on the wall clock.
"""

import json
from itertools import count

import pytest

from extraction.models import RunnerState
from extraction.runner import BatchRunner
from portfolio_radar.models import DividendData, PortfolioItem, StockData
from portfolio_radar.tasks import DividendCalendarTask, PortfolioTask, StockRadarTask
from portfolio_radar.utils.errors import (
    InvalidSubjectsError,
    QuotaExceededError,
    RefreshFailedError,
    RemoteQueryError,
)
from tests.conftest import FakeSearchClient, SleepRecorder


def make_stock(name: str) -> StockData:
    return StockData(name=name, current_price=10.0, currency="€", exit_price=12.0, accumulative_price=8.0)


def quote(name: str, price: float) -> str:
    return json.dumps([{"name": name, "marketPrice": price, "recommendation": "Buy"}])


class TestBatchRunner:
    """Test batching, progress and per-batch error isolation."""

    @pytest.mark.asyncio
    async def test_happy_path_merges_all_batches(self, sleep_recorder):
        stocks = [make_stock("Repsol"), make_stock("Endesa"), make_stock("Iberdrola")]
        client = FakeSearchClient([quote("Repsol", 15.0), quote("Endesa", 30.0), quote("Iberdrola", 18.0)])
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=1, sleep=sleep_recorder)
        progress = []

        merged = await runner.run(stocks, progress.append)

        assert [s.market_price for s in merged] == [15.0, 30.0, 18.0]
        assert all(s.updated for s in merged)
        assert progress == [33, 67, 100]
        assert runner.state == RunnerState.DONE
        assert runner.last_run.completed_batches == 3

    @pytest.mark.asyncio
    async def test_each_prompt_lists_its_batch(self, sleep_recorder):
        stocks = [make_stock(n) for n in ("Repsol", "Endesa", "Enagás", "Iberdrola")]
        client = FakeSearchClient()
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=3, sleep=sleep_recorder)

        await runner.run(stocks)

        assert client.calls == 2
        assert all(f"- {n}" in client.prompts[0] for n in ("Repsol", "Endesa", "Enagás"))
        assert "- Iberdrola" in client.prompts[1]
        assert "- Iberdrola" not in client.prompts[0]

    @pytest.mark.asyncio
    async def test_progress_is_monotonic_and_reaches_100(self, sleep_recorder):
        stocks = [make_stock(f"Company {i}") for i in range(7)]
        runner = BatchRunner(FakeSearchClient(), StockRadarTask(), max_batch_size=1, sleep=sleep_recorder)
        progress = []

        await runner.run(stocks, progress.append)

        assert len(progress) == 7
        assert progress == sorted(progress)
        assert progress[0] > 0
        assert progress[-1] == 100

    @pytest.mark.asyncio
    async def test_quota_error_aborts_remaining_batches(self, sleep_recorder):
        """Batch 3 of 5 hits the quota: batches 4-5 never run and nothing is returned."""
        stocks = [make_stock(f"Company {i}") for i in range(5)]
        client = FakeSearchClient(
            [
                quote("Company 0", 1.0),
                quote("Company 1", 2.0),
                QuotaExceededError("429 RESOURCE_EXHAUSTED"),
                quote("Company 3", 4.0),
                quote("Company 4", 5.0),
            ]
        )
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=1, sleep=sleep_recorder)
        progress = []

        with pytest.raises(QuotaExceededError) as exc_info:
            await runner.run(stocks, progress.append)

        assert client.calls == 3
        assert progress == [20, 40]
        assert "quota" in str(exc_info.value).lower()
        assert runner.state == RunnerState.FAILED

    @pytest.mark.asyncio
    async def test_quota_message_from_generic_error_is_classified(self, sleep_recorder):
        """A client that does not translate errors still triggers the quota abort."""
        client = FakeSearchClient([RuntimeError("You exceeded your current quota")])
        runner = BatchRunner(client, StockRadarTask(), sleep=sleep_recorder)

        with pytest.raises(QuotaExceededError):
            await runner.run([make_stock("Repsol"), make_stock("Endesa")])

        assert client.calls == 1

    @pytest.mark.asyncio
    async def test_unparseable_batch_is_not_fatal(self, sleep_recorder):
        """Batch 2 of 3 returns broken JSON: the run completes without its records."""
        stocks = [make_stock("Repsol"), make_stock("Endesa"), make_stock("Iberdrola")]
        client = FakeSearchClient(
            [quote("Repsol", 15.0), "[{'name': 'Endesa', 'marketPrice': 30}]", quote("Iberdrola", 18.0)]
        )
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=1, sleep=sleep_recorder)
        progress = []

        merged = await runner.run(stocks, progress.append)

        assert merged[0].market_price == 15.0
        assert merged[1] == stocks[1]
        assert merged[2].market_price == 18.0
        assert progress[-1] == 100
        outcome = runner.last_run.outcomes[1]
        assert outcome.records == 0
        assert "Invalid JSON" in outcome.error
        assert runner.last_run.errors[0]["step"] == "batch 1"

    @pytest.mark.asyncio
    async def test_prose_only_and_remote_errors_are_not_fatal(self, sleep_recorder):
        stocks = [make_stock("Repsol"), make_stock("Endesa"), make_stock("Iberdrola")]
        client = FakeSearchClient(
            ["Sorry, no data available.", RemoteQueryError("503 Service Unavailable", status_code=503), ""]
        )
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=1, sleep=sleep_recorder)

        merged = await runner.run(stocks)

        assert merged == stocks
        assert [o.records for o in runner.last_run.outcomes] == [0, 0, 0]
        assert len(runner.last_run.failed_batches) == 3
        assert len(runner.last_run.errors) == 1
        assert runner.state == RunnerState.DONE

    @pytest.mark.asyncio
    async def test_parse_error_mentioning_429_is_not_quota(self, sleep_recorder):
        """Broken JSON that happens to contain a price of 429 stays a per-batch failure."""
        client = FakeSearchClient(["[{name: Repsol, marketPrice: 429}]", quote("Endesa", 30.0)])
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=1, sleep=sleep_recorder)

        merged = await runner.run([make_stock("Repsol"), make_stock("Endesa")])

        assert client.calls == 2
        assert merged[1].market_price == 30.0

    @pytest.mark.asyncio
    async def test_invalid_records_are_dropped(self, sleep_recorder):
        client = FakeSearchClient(
            [json.dumps([{"marketPrice": 1.0}, {"name": "Repsol", "marketPrice": "15,5"}])]
        )
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=3, sleep=sleep_recorder)

        merged = await runner.run([make_stock("Repsol")])

        assert merged[0].market_price == 15.5
        assert runner.last_run.outcomes[0].records == 1

    @pytest.mark.asyncio
    async def test_records_from_other_batches_can_match(self, sleep_recorder):
        """Reconciliation runs once over all collected records."""
        client = FakeSearchClient([json.dumps([{"name": "Endesa", "marketPrice": 30.0}]), "[]"])
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=1, sleep=sleep_recorder)

        merged = await runner.run([make_stock("Repsol"), make_stock("Endesa")])

        assert merged[1].market_price == 30.0
        assert merged[0].market_price is None

    @pytest.mark.asyncio
    async def test_identifier_matching_in_portfolio_run(self, sleep_recorder):
        items = [
            PortfolioItem(isin="ES0173516115", company="ES0173516115", quantity=10),
            PortfolioItem(isin="ES0144580Y14", company="Iberdrola", quantity=5),
        ]
        client = FakeSearchClient(
            [
                json.dumps([{"isin": "es0173516115 ", "company": "Repsol", "currentPrice": 15.0, "action": "VENDER"}]),
                json.dumps([{"isin": "ES0144580Y15", "currentPrice": 18.0}]),
            ]
        )
        runner = BatchRunner(client, PortfolioTask(), max_batch_size=1, batch_delay=6.0, sleep=sleep_recorder)

        merged = await runner.run(items)

        assert merged[0].company == "Repsol"
        assert merged[0].current_value == 150.0
        assert merged[0].action == "VENDER"
        assert merged[1] == items[1]


class TestBatchDelay:
    """Test the fixed inter-batch pause."""

    @pytest.mark.asyncio
    async def test_delay_before_every_batch_after_the_first(self):
        client = FakeSearchClient()
        sleep = SleepRecorder(events=client.events)
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=1, batch_delay=6.0, sleep=sleep)

        await runner.run([make_stock("A"), make_stock("B"), make_stock("C")])

        assert sleep.delays == [6.0, 6.0]
        assert client.events == ["generate", "sleep", "generate", "sleep", "generate"]

    @pytest.mark.asyncio
    async def test_delay_is_unconditional(self):
        """Failures do not change the pause."""
        client = FakeSearchClient([RemoteQueryError("timeout"), "[]", "garbage"])
        sleep = SleepRecorder()
        runner = BatchRunner(client, StockRadarTask(), max_batch_size=1, batch_delay=2.5, sleep=sleep)

        await runner.run([make_stock("A"), make_stock("B"), make_stock("C")])

        assert sleep.delays == [2.5, 2.5]

    @pytest.mark.asyncio
    async def test_zero_delay_never_sleeps(self, sleep_recorder):
        runner = BatchRunner(FakeSearchClient(), StockRadarTask(), max_batch_size=1, sleep=sleep_recorder)

        await runner.run([make_stock("A"), make_stock("B")])

        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_injected_clock_times_the_run(self, sleep_recorder):
        ticks = count(start=100, step=2)
        runner = BatchRunner(
            FakeSearchClient(),
            StockRadarTask(),
            sleep=sleep_recorder,
            clock=lambda: next(ticks),
        )

        await runner.run([make_stock("A")])

        assert runner.last_run.duration_seconds > 0
        assert runner.last_run.outcomes[0].duration_seconds == 2


class TestContract:
    """Test pre-flight validation and fatal failures."""

    @pytest.mark.asyncio
    async def test_empty_list_runs_nothing(self, fake_client, sleep_recorder):
        runner = BatchRunner(fake_client, StockRadarTask(), sleep=sleep_recorder)
        progress = []

        assert await runner.run([], progress.append) == []
        assert fake_client.calls == 0
        assert progress == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_batch_size", [0, -3])
    async def test_rejects_bad_batch_size(self, fake_client, max_batch_size):
        runner = BatchRunner(fake_client, StockRadarTask(), max_batch_size=max_batch_size)

        with pytest.raises(InvalidSubjectsError):
            await runner.run([make_stock("Repsol")])
        assert fake_client.calls == 0

    @pytest.mark.asyncio
    async def test_rejects_negative_delay(self, fake_client):
        runner = BatchRunner(fake_client, StockRadarTask(), batch_delay=-1)

        with pytest.raises(InvalidSubjectsError):
            await runner.run([make_stock("Repsol")])

    @pytest.mark.asyncio
    async def test_rejects_wrong_subject_type(self, fake_client):
        runner = BatchRunner(fake_client, StockRadarTask())

        with pytest.raises(InvalidSubjectsError):
            await runner.run([make_stock("Repsol"), DividendData(name="Repsol")])
        assert fake_client.calls == 0

    @pytest.mark.asyncio
    async def test_rejects_string_input(self, fake_client):
        runner = BatchRunner(fake_client, DividendCalendarTask())

        with pytest.raises(InvalidSubjectsError):
            await runner.run("Repsol")

    @pytest.mark.asyncio
    async def test_portfolio_requires_isin(self, fake_client):
        runner = BatchRunner(fake_client, PortfolioTask())

        with pytest.raises(InvalidSubjectsError):
            await runner.run([PortfolioItem(isin="  ", company="Repsol", quantity=1)])
        assert fake_client.calls == 0

    @pytest.mark.asyncio
    async def test_failing_progress_callback_is_generic_failure(self, sleep_recorder):
        def broken_callback(percent):
            raise RuntimeError("display gone")

        runner = BatchRunner(FakeSearchClient(), StockRadarTask(), sleep=sleep_recorder)

        with pytest.raises(RefreshFailedError):
            await runner.run([make_stock("Repsol")], broken_callback)
        assert runner.state == RunnerState.FAILED

    @pytest.mark.asyncio
    async def test_independent_runs_share_nothing(self, sleep_recorder):
        task = StockRadarTask()
        first = BatchRunner(FakeSearchClient([quote("Repsol", 15.0)]), task, sleep=sleep_recorder)
        second = BatchRunner(FakeSearchClient([quote("Repsol", 16.0)]), task, sleep=sleep_recorder)

        a = await first.run([make_stock("Repsol")])
        b = await second.run([make_stock("Repsol")])

        assert (a[0].market_price, b[0].market_price) == (15.0, 16.0)
        assert first.last_run is not second.last_run
        assert first.last_run.records is not second.last_run.records
