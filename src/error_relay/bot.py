"""Load generator bot that keeps the error pipeline exercised.

The bot periodically GETs a randomly chosen error-triggering endpoint of the
host service. It owns its own lifecycle, independent of the HTTP server:

    CREATED --start()--> RUNNING --stop()--> STOPPED

start() fires one request immediately, then one per interval until stop().
stop() only prevents future ticks; an in-flight request is left to finish
or time out. Every failure is logged and stays inside the bot's loop.

Example:
    >>> bot = LoadGeneratorBot("http://localhost:8080", interval=30.0)
    >>> bot.start()
    >>> ...
    >>> bot.stop()
    >>> await bot.wait()

"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from collections.abc import Sequence
from enum import StrEnum

import httpx

from error_relay.core.exceptions import BotStateError

logger = logging.getLogger(__name__)

BOT_TIMEOUT = 10.0
RESPONSE_PREVIEW_LIMIT = 200

UNCAUGHT_PANIC_ENDPOINT = "/api/error/uncaught-panic"

DEFAULT_ENDPOINTS: tuple[str, ...] = (
    "/api/error/database",
    "/api/error/validation",
    "/api/error/network",
    "/api/error/auth",
    "/api/error/payment",
    "/api/error/panic",
)


class BotState(StrEnum):
    """Lifecycle states of LoadGeneratorBot."""

    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


class HitOutcome(StrEnum):
    """Classification of one bot request."""

    TRIGGERED = "triggered"  # status >= 400, the expected case
    UNEXPECTED_SUCCESS = "unexpected_success"  # status < 400
    TRANSPORT_ERROR = "transport_error"


class LoadGeneratorBot:
    """Scheduled task hitting random error endpoints of the host service.

    Attributes:
        base_url: Service base URL, e.g. "http://localhost:8080".
        interval: Seconds between ticks.
        endpoints: Candidate paths; the uncaught-panic path is always excluded.

    """

    def __init__(
        self,
        base_url: str,
        interval: float,
        endpoints: Sequence[str] = DEFAULT_ENDPOINTS,
        rng: random.Random | None = None,
        timeout: float = BOT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the bot in CREATED state.

        Args:
            base_url: Service base URL.
            interval: Seconds between ticks (must be positive).
            endpoints: Candidate endpoint paths.
            rng: Random source, injectable for deterministic tests.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport for tests.

        Raises:
            ValueError: If interval is not positive or no usable endpoint remains.

        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        candidates = tuple(e for e in endpoints if e != UNCAUGHT_PANIC_ENDPOINT)
        if len(candidates) != len(endpoints):
            logger.warning("Excluding %s from bot endpoints (would crash the host)", UNCAUGHT_PANIC_ENDPOINT)
        if not candidates:
            raise ValueError("bot needs at least one endpoint")

        self.base_url = base_url.rstrip("/")
        self.interval = interval
        self.endpoints = candidates
        self._rng = rng or random.Random()
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)
        self._state = BotState.CREATED
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> BotState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is BotState.RUNNING

    def start(self) -> asyncio.Task[None]:
        """Transition CREATED -> RUNNING and schedule the tick loop.

        Must be called from within a running event loop.

        Returns:
            The loop task.

        Raises:
            BotStateError: If the bot was already started or stopped.

        """
        if self._state is not BotState.CREATED:
            raise BotStateError(f"Cannot start bot in state {self._state.value}")

        self._state = BotState.RUNNING
        logger.info("🤖 Error Bot started - hitting endpoints every %.1fs", self.interval)
        self._task = asyncio.get_running_loop().create_task(self._run(), name="load-generator-bot")
        return self._task

    def stop(self) -> None:
        """Transition to STOPPED. Safe to call repeatedly or before start()."""
        if self._state is BotState.STOPPED:
            logger.debug("Bot already stopped")
            return
        self._state = BotState.STOPPED
        self._stop_event.set()

    async def wait(self) -> None:
        """Wait for the tick loop to exit (after stop())."""
        if self._task is not None:
            await self._task

    async def aclose(self) -> None:
        """Stop the bot, wait for the loop, and close the HTTP client."""
        self.stop()
        if self._task is not None and not self._task.done():
            # In-flight request is not cancelled; wait for it to end on its own.
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        await self._client.aclose()

    def choose_endpoint(self) -> str:
        """Pick one candidate endpoint uniformly at random."""
        return self._rng.choice(self.endpoints)

    async def hit_random_endpoint(self) -> HitOutcome:
        """Fire one request and classify the outcome. Never raises."""
        endpoint = self.choose_endpoint()
        logger.info("🎯 Bot hitting: %s", endpoint)

        try:
            response = await self._client.get(endpoint)
        except httpx.HTTPError as e:
            logger.error("❌ Bot request failed: %s", str(e) or type(e).__name__)
            return HitOutcome.TRANSPORT_ERROR

        if response.status_code >= 400:
            logger.info("✅ Bot triggered error (Status: %d)", response.status_code)
            logger.debug("   Response: %s", response.text[:RESPONSE_PREVIEW_LIMIT])
            return HitOutcome.TRIGGERED

        logger.warning("⚠️  Bot expected error but got: %d", response.status_code)
        return HitOutcome.UNEXPECTED_SUCCESS

    async def _run(self) -> None:
        """Tick loop: one immediate hit, then one per interval until stopped."""
        try:
            await self._tick()
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                except TimeoutError:
                    await self._tick()
        finally:
            logger.info("🤖 Error Bot stopped")

    async def _tick(self) -> None:
        try:
            await self.hit_random_endpoint()
        except Exception:
            logger.exception("Bot tick failed")
