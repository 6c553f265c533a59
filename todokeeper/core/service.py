from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

import uvicorn
from fastapi import FastAPI
from urllib3.util.url import parse_url

from .errors import register_exception_handlers
from .logger import setup_logger
from .settings import TodoKeeperSettings, get_settings


def ifnone(val, default):
    """Return the given value if it is not None, else return the default."""
    return val if val is not None else default


class Service:
    """Base class owning a FastAPI app, a structured logger and the app lifespan.

    Subclasses register their endpoints with ``add_endpoint`` and override ``startup`` /
    ``shutdown_cleanup`` for resource management.

    Example:
        ```python
        class MyService(Service):
            def __init__(self, **kwargs):
                super().__init__(summary="My service", **kwargs)
                self.add_endpoint("/echo", self.echo, methods=["POST"])

            async def echo(self, payload: EchoInput) -> EchoOutput:
                return EchoOutput(echoed=payload.message)

        MyService.launch()
        ```
    """

    name: str = "service"

    def __init__(
        self,
        *,
        url: Optional[str] = None,
        settings: Optional[TodoKeeperSettings] = None,
        summary: str = "",
        description: str = "",
        version: str = "0.1.0",
        logger=None,
    ):
        self.settings = ifnone(settings, get_settings())
        self._url = ifnone(url, self.settings.URL)
        self.logger = logger or setup_logger(
            f"todokeeper.{self.name}",
            log_dir=self.settings.LOG_DIR,
            logger_level=self.settings.LOG_LEVEL.upper(),
            stream_level=self.settings.LOG_LEVEL.upper(),
            structlog_json=self.settings.LOG_JSON,
        )
        self._endpoints: List[str] = []
        self._endpoints_metadata: Dict[str, Dict[str, Any]] = {}

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await self.startup()
            try:
                yield
            finally:
                await self.shutdown_cleanup()

        self.app = FastAPI(
            title=self.__class__.__name__,
            summary=summary,
            description=description,
            version=version,
            debug=self.settings.DEBUG,
            lifespan=lifespan,
        )
        register_exception_handlers(self.app, self.logger)

    @property
    def url(self) -> str:
        return self._url

    @property
    def endpoints(self) -> List[str]:
        return list(self._endpoints)

    @property
    def public_routes(self) -> FrozenSet[Tuple[str, str]]:
        """(method, path) pairs registered with ``public=True``."""
        return frozenset(
            tuple(key.split(" ", 1)) for key, meta in self._endpoints_metadata.items() if meta["public"]
        )

    def add_endpoint(
        self,
        path: str,
        func: Callable,
        *,
        methods: Optional[List[str]] = None,
        status_code: Optional[int] = None,
        response_model: Any = None,
        summary: Optional[str] = None,
        tags: Optional[List[str]] = None,
        public: bool = False,
    ) -> None:
        """Register a new endpoint on the FastAPI app.

        Endpoints registered with ``public=True`` are listed in ``public_routes``, which the
        auth middleware uses as its bypass list.
        """
        methods = ifnone(methods, default=["POST"])
        route_kwargs: Dict[str, Any] = {"methods": methods}
        if status_code is not None:
            route_kwargs["status_code"] = status_code
        if response_model is not None:
            route_kwargs["response_model"] = response_model
        if summary is not None:
            route_kwargs["summary"] = summary
        if tags is not None:
            route_kwargs["tags"] = tags

        self.app.add_api_route(path, endpoint=func, **route_kwargs)
        for method in methods:
            key = f"{method} {path}"
            self._endpoints.append(key)
            self._endpoints_metadata[key] = {"public": public, "status_code": status_code}

    # -------------------------------------------------------------------------
    # Lifecycle hooks
    # -------------------------------------------------------------------------

    async def startup(self) -> None:
        """Acquire resources. Called once when the app starts serving."""
        self.logger.info("Service starting", service=self.name, url=self.url)

    async def shutdown_cleanup(self) -> None:
        """Release resources. Called once when the app stops serving."""
        self.logger.info("Service stopped", service=self.name)

    # -------------------------------------------------------------------------
    # Launching
    # -------------------------------------------------------------------------

    @classmethod
    def launch(cls, url: Optional[str] = None, **kwargs) -> None:
        """Build the service and serve it with uvicorn until interrupted."""
        service = cls(url=url, **kwargs)
        parsed = parse_url(service.url)
        uvicorn.run(
            service.app,
            host=parsed.host or "0.0.0.0",
            port=parsed.port or 8080,
            log_level=service.settings.LOG_LEVEL.lower(),
        )
