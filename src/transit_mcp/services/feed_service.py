"""Feed engine: owns the live snapshot and answers queries against it."""

import asyncio
import logging
from datetime import datetime
from functools import lru_cache
from pathlib import Path

from transit_mcp.data.cache import ShapeCache
from transit_mcp.data.config import FeedConfig, get_feed_config
from transit_mcp.data.store import FeedStore
from transit_mcp.data.store_builder import BuildResult, ProgressCallback, build_store
from transit_mcp.models.gtfs import Point
from transit_mcp.models.responses import (
    FeedStatusResponse,
    LoadFeedResponse,
    OutcomeKind,
    SearchRoutesResponse,
    ShapeResponse,
    StopSequenceResponse,
    SuggestedRouteOption,
    SuggestRoutesResponse,
)
from transit_mcp.services import route_service, shape_service, trip_planner

logger = logging.getLogger(__name__)


class FeedEngine:
    """Holds the current FeedStore and runs refreshes in the background.

    A refresh builds a complete new store and publishes it with one attribute
    assignment. Queries read ``self.store`` once when they start, so they keep
    using that snapshot even if a refresh finishes midway. A failed or
    cancelled refresh leaves the previous snapshot in place.

    Usage:
        engine = FeedEngine(Path("data/gtfs"))
        await engine.load_feed()
        response = await engine.suggest_direct_routes(origin, destination)
    """

    def __init__(
        self,
        feed_dir: Path,
        config: FeedConfig | None = None,
        progress: ProgressCallback | None = None,
    ):
        """Initialize the engine.

        Args:
            feed_dir: Directory holding the decompressed GTFS tables.
            config: Tuning values; defaults are used when omitted.
            progress: Optional per-table callback forwarded to the builder.
        """
        self.feed_dir = Path(feed_dir)
        self.config = config or FeedConfig()
        self._progress = progress
        self.store: FeedStore | None = None
        self._load_task: asyncio.Task[BuildResult] | None = None
        self._load_lock = asyncio.Lock()
        self._shape_cache: ShapeCache[shape_service.ShapeKey, list[Point]] = ShapeCache(
            ttl=self.config.shape_cache_ttl_seconds,
            max_entries=self.config.shape_cache_size,
        )

    @property
    def is_loading(self) -> bool:
        return self._load_task is not None and not self._load_task.done()

    def _built_at(self) -> str | None:
        return self.store.built_at.isoformat() if self.store is not None else None

    async def load_feed(self, force_refresh: bool = False) -> LoadFeedResponse:
        """Load the feed, or refresh it when ``force_refresh`` is set.

        Without ``force_refresh`` a running load is joined and an existing
        snapshot is reused. With it, any running load is cancelled and a new
        build starts. Starting and cancelling loads is serialised, so at most
        one build is ever running.

        Returns:
            LoadFeedResponse with the build outcome and per-table statuses.
        """
        async with self._load_lock:
            if not force_refresh and self.is_loading:
                logger.info("Feed load already in progress, waiting for it")
                task = self._load_task
            elif not force_refresh and self.store is not None:
                return LoadFeedResponse(
                    success=True,
                    outcome=OutcomeKind.SUCCEEDED,
                    message="Feed already loaded",
                    built_at=self._built_at(),
                )
            else:
                if self.is_loading:
                    logger.info("Cancelling running feed load for a forced refresh")
                    await self.cancel_load()
                task = asyncio.create_task(self._build())
                self._load_task = task

        return await self._await_load(task)

    async def _build(self) -> BuildResult:
        logger.info(f"Building feed snapshot from {self.feed_dir}")
        result = await build_store(self.feed_dir, self._progress)
        if result.store is not None:
            self.store = result.store
            self._shape_cache.clear()
            logger.info(f"Published feed snapshot built at {result.store.built_at.isoformat()}")
        else:
            logger.error(f"Feed build failed ({result.outcome.value}): {result.message}")
        return result

    async def _await_load(self, task: asyncio.Task[BuildResult]) -> LoadFeedResponse:
        # a cancelled waiter must not cancel the shared load task
        try:
            result = await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            return LoadFeedResponse(
                success=False,
                outcome=OutcomeKind.NOT_READY,
                message="Feed load was cancelled; the previous snapshot is still in use.",
                built_at=self._built_at(),
            )

        return LoadFeedResponse(
            success=result.success,
            outcome=result.outcome,
            message=result.message,
            tables=result.tables,
            built_at=self._built_at(),
        )

    async def cancel_load(self) -> bool:
        """Abort a running load. Returns True if one was cancelled."""
        task = self._load_task
        if task is None or task.done():
            return False
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Feed load cancelled")
        return True

    def status(self) -> FeedStatusResponse:
        store = self.store
        return FeedStatusResponse(
            loaded=store is not None,
            loading=self.is_loading,
            ready=store is not None and store.is_ready,
            feed_dir=str(self.feed_dir),
            built_at=self._built_at(),
            counts=store.counts() if store is not None else {},
        )

    async def search_routes(
        self, query: str = "", limit: int | None = None
    ) -> SearchRoutesResponse:
        return route_service.search_routes(self.store, query, limit)

    async def stop_sequence_for_route(self, route_id: str) -> StopSequenceResponse:
        return route_service.stop_sequence_for_route(self.store, route_id)

    async def suggest_direct_routes(
        self, origin: Point, destination: Point, now: datetime | None = None
    ) -> SuggestRoutesResponse:
        """Suggest direct trips between two coordinates, departing from ``now`` on."""
        return await trip_planner.suggest_direct_routes(
            self.store,
            origin,
            destination,
            now or datetime.now(),
            radius_meters=self.config.nearby_radius_meters,
            fare=self.config.placeholder_fare,
        )

    async def shape_for_trip(self, trip_id: str) -> ShapeResponse:
        return await shape_service.shape_for_trip(self.store, trip_id, self._shape_cache)

    async def segment_for_suggestion(self, suggestion: SuggestedRouteOption) -> ShapeResponse:
        return await shape_service.segment_for_suggestion(
            self.store, suggestion, self._shape_cache
        )

    async def segment_for_trip(
        self, trip_id: str, origin_stop_id: str, destination_stop_id: str
    ) -> ShapeResponse:
        return await shape_service.segment_for_trip(
            self.store, trip_id, origin_stop_id, destination_stop_id, self._shape_cache
        )


@lru_cache
def get_engine() -> FeedEngine:
    """Get the process-wide engine used by the MCP tools (cached singleton)."""
    config = get_feed_config()
    return FeedEngine(config.feed_dir, config)
