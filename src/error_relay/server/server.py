"""HTTP server for error-relay.

This module wires the pipeline together and serves it with Starlette/Uvicorn:
- Builds the chat and log sinks, the dispatcher and the tracker from Settings
- Installs the recovery boundary around the error routes
- Starts the load generator bot on startup and stops it on shutdown

Public API:
    ErrorRelayServer: Main server class
    start_server: Convenience function to start the server
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import httpx
from starlette.applications import Starlette
from starlette.middleware import Middleware

from error_relay.bot import LoadGeneratorBot
from error_relay.core.config import Settings
from error_relay.core.tasks import drain_background_tasks
from error_relay.notifications import (
    DiscordNotifier,
    DispatchOptions,
    ElkLogger,
    NotificationDispatcher,
)
from error_relay.server.routes import API_ROUTES
from error_relay.server.services import (
    AuthService,
    DangerousService,
    DatabaseService,
    ExternalAPIService,
    PaymentService,
    UserService,
)
from error_relay.tracker import (
    ErrorTracker,
    RecoveryMiddleware,
    TrackerConfig,
    UnrecoveredFaultMiddleware,
)

logger = logging.getLogger(__name__)

SHUTDOWN_DRAIN_TIMEOUT = 10.0


@dataclass
class Services:
    """Simulated domain services used by the error routes."""

    database: DatabaseService = field(default_factory=DatabaseService)
    users: UserService = field(default_factory=UserService)
    payments: PaymentService = field(default_factory=PaymentService)
    external_api: ExternalAPIService = field(default_factory=ExternalAPIService)
    auth: AuthService = field(default_factory=AuthService)
    dangerous: DangerousService = field(default_factory=DangerousService)


class ErrorRelayServer:
    """Error-relay HTTP service.

    Attributes:
        settings: Process configuration.
        host: Server bind address.
        chat: Chat webhook sink.
        log: Log-ingestion sink (also the tracker's logging collaborator).
        dispatcher: Fans events out to chat and log sinks.
        tracker: Builds events and hands them to the dispatcher.
        bot: Load generator, or None when disabled.

    """

    def __init__(
        self,
        settings: Settings,
        host: str = "0.0.0.0",
        bot: LoadGeneratorBot | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize server and build the pipeline.

        Args:
            settings: Process configuration.
            host: Address to bind server to.
            bot: Bot to run instead of the one built from settings.
            transport: httpx transport for both sinks (tests inject a mock).

        """
        self.settings = settings
        self.host = host

        self.chat = DiscordNotifier(
            settings.discord_webhook_url,
            environment=settings.environment,
            transport=transport,
        )
        self.log = ElkLogger(
            settings.elk_url,
            username=settings.elk_username,
            password=settings.elk_password,
            environment=settings.environment,
            transport=transport,
        )
        self.dispatcher = NotificationDispatcher(
            [self.chat, self.log],
            DispatchOptions(
                async_delivery=settings.async_delivery,
                include_stack_trace=settings.include_stack_trace,
                environment=settings.environment,
            ),
        )
        self.tracker = ErrorTracker(
            TrackerConfig(
                on_error=self.dispatcher.on_error,
                async_callback=settings.async_delivery,
                logger=self.log,
                include_stack_trace=settings.include_stack_trace,
                environment=settings.environment,
            )
        )

        if bot is None and settings.bot_enabled:
            bot = LoadGeneratorBot(f"http://localhost:{settings.port}", settings.bot_interval)
        self.bot = bot

        self._app: Starlette | None = None

    @property
    def port(self) -> int:
        return self.settings.port

    def create_app(self) -> Starlette:
        """Create the Starlette application.

        Returns:
            Configured Starlette app (cached after first call).

        """
        if self._app is not None:
            return self._app

        middleware = [
            Middleware(UnrecoveredFaultMiddleware),
            Middleware(RecoveryMiddleware, tracker=self.tracker),
        ]

        app = Starlette(
            debug=False,
            routes=API_ROUTES,
            middleware=middleware,
            lifespan=self._lifespan,
        )
        app.state.server = self
        app.state.services = Services()
        app.state.tracker = self.tracker

        self._app = app
        return app

    @contextlib.asynccontextmanager
    async def _lifespan(self, app: Starlette) -> AsyncIterator[None]:
        if self.bot is not None:
            self.bot.start()
        self.log.info(f"Server starting on port {self.port}")
        try:
            yield
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop the bot, let in-flight deliveries finish, close HTTP clients."""
        logger.info("Shutting down server...")
        if self.bot is not None:
            self.bot.stop()
        await drain_background_tasks(timeout=SHUTDOWN_DRAIN_TIMEOUT)
        if self.bot is not None:
            await self.bot.aclose()
        await self.chat.aclose()
        await self.log.aclose()

    async def run(self, log_level: str = "info") -> None:
        """Start the server and run until shutdown.

        Args:
            log_level: Uvicorn log level (debug, info, warning, error).

        """
        import uvicorn

        app = self.create_app()

        config = uvicorn.Config(
            app,
            host=self.host,
            port=self.port,
            log_level=log_level,
        )
        server = uvicorn.Server(config)

        # Uvicorn handles SIGINT/SIGTERM; shutdown runs through the lifespan.
        await server.serve()


def start_server(settings: Settings, host: str = "0.0.0.0", log_level: str = "info") -> None:
    """Start the error-relay server.

    Args:
        settings: Process configuration.
        host: Address to bind to.
        log_level: Uvicorn log level.

    """
    server = ErrorRelayServer(settings, host=host)
    asyncio.run(server.run(log_level=log_level))
