import asyncio
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
import logging
import threading

from pstitle import step_logic
from pstitle.aggregator import AsyncEventMerge, ProgressAggregator, ThreadedEventMerge
from pstitle.config import Settings
from pstitle.faults import PipelineFault
from pstitle.schemas import Credentials, Outcome, PopulatedRecord, Record


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageDelays:
    rate_limit_ms: int
    auth_ms: int
    retrieve_ms: int
    persist_ms: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "StageDelays":
        return cls(
            rate_limit_ms=settings.delay_rate_limit_ms,
            auth_ms=settings.delay_auth_ms,
            retrieve_ms=settings.delay_retrieve_ms,
            persist_ms=settings.delay_persist_ms,
        )


class Stages:

    def __init__(self, delays: StageDelays) -> None:
        self.delays = delays

    def rate_limit(self, record: Record) -> None:
        step_logic.rate_limit_requests(self.delays.rate_limit_ms)

    def authenticate(self, first_time: bool, credentials: Credentials) -> None:
        step_logic.authenticate_with_server(first_time, credentials, self.delays.auth_ms)

    def retrieve(self, record: Record) -> Outcome:
        return step_logic.retrieve_information(record, self.delays.retrieve_ms)

    def persist(self, populated: PopulatedRecord) -> None:
        step_logic.output_record_to_file(populated, self.delays.persist_ms)

    async def rate_limit_async(self, record: Record) -> None:
        await step_logic.rate_limit_requests_async(self.delays.rate_limit_ms)

    async def authenticate_async(self, first_time: bool, credentials: Credentials) -> None:
        await step_logic.authenticate_with_server_async(first_time, credentials, self.delays.auth_ms)

    async def retrieve_async(self, record: Record) -> Outcome:
        return await step_logic.retrieve_information_async(record, self.delays.retrieve_ms)

    async def persist_async(self, populated: PopulatedRecord) -> None:
        await step_logic.output_record_to_file_async(populated, self.delays.persist_ms)


class _PipelineBase:
    def __init__(self, stages: Stages, aggregator: ProgressAggregator, *, persist_workers: int = 10) -> None:
        if persist_workers < 1:
            raise ValueError("persist_workers must be at least 1")
        self.stages = stages
        self.aggregator = aggregator
        self.persist_workers = persist_workers

    def _stop_requested(self, record: Record) -> bool:
        if self.aggregator.interrupted:
            logger.info("stopping before next record", extra={"last_record": record.index})
            return True
        return False


class ThreadedPipeline(_PipelineBase):

    def __init__(
        self,
        stages: Stages,
        aggregator: ProgressAggregator,
        events: ThreadedEventMerge,
        *,
        persist_workers: int = 10,
    ) -> None:
        super().__init__(stages, aggregator, persist_workers=persist_workers)
        self.events = events

    def run(self, records: list[Record], credentials: Credentials, resume_offset: int) -> int:
        in_flight = threading.BoundedSemaphore(self.persist_workers)
        futures: list[Future[None]] = []
        initiated = 0

        with ThreadPoolExecutor(max_workers=self.persist_workers, thread_name_prefix="persist") as pool:
            for record in records[resume_offset:]:
                initiated += 1
                populated = self._process(record, credentials, first_time=record.index == resume_offset)

                in_flight.acquire()
                future = pool.submit(self.stages.persist, populated)
                future.add_done_callback(lambda _: in_flight.release())
                futures.append(future)

                self.aggregator.sync()
                if self._stop_requested(record):
                    break

        for future in futures:
            exc = future.exception()
            if exc is not None:
                raise PipelineFault(f"persisting a record failed: {exc}") from exc
        return initiated

    def _process(self, record: Record, credentials: Credentials, *, first_time: bool) -> PopulatedRecord:
        self.stages.rate_limit(record)
        self.stages.authenticate(first_time, credentials)
        outcome = self.stages.retrieve(record)
        populated = step_logic.augment_record(record, outcome)
        self.events.send(outcome)
        return populated


class AsyncPipeline(_PipelineBase):

    def __init__(
        self,
        stages: Stages,
        aggregator: ProgressAggregator,
        events: AsyncEventMerge,
        *,
        persist_workers: int = 10,
    ) -> None:
        super().__init__(stages, aggregator, persist_workers=persist_workers)
        self.events = events

    def run(self, records: list[Record], credentials: Credentials, resume_offset: int) -> int:
        return asyncio.run(self.run_async(records, credentials, resume_offset))

    async def run_async(self, records: list[Record], credentials: Credentials, resume_offset: int) -> int:
        in_flight = asyncio.Semaphore(self.persist_workers)
        tasks: list[asyncio.Task[None]] = []
        initiated = 0

        for record in records[resume_offset:]:
            initiated += 1
            populated = await self._process(record, credentials, first_time=record.index == resume_offset)

            await in_flight.acquire()
            tasks.append(asyncio.create_task(self._persist(populated, in_flight)))

            await self.aggregator.sync_async()
            if self._stop_requested(record):
                break

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                raise PipelineFault(f"persisting a record failed: {result}") from result
        return initiated

    async def _process(self, record: Record, credentials: Credentials, *, first_time: bool) -> PopulatedRecord:
        await self.stages.rate_limit_async(record)
        await self.stages.authenticate_async(first_time, credentials)
        outcome = await self.stages.retrieve_async(record)
        populated = step_logic.augment_record(record, outcome)
        self.events.send(outcome)
        return populated

    async def _persist(self, populated: PopulatedRecord, in_flight: asyncio.Semaphore) -> None:
        try:
            await self.stages.persist_async(populated)
        finally:
            in_flight.release()
