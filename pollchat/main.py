from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from pollchat.controllers import chat_router, register_exception_handlers
from pollchat.dependencies.store import StoreDep
from pollchat.store.base import KeyValueStore
from pollchat.store.lifespan import lifespan, check_store
from pollchat.utils.config import APP_HOST, APP_PORT, TimingSettings
from pollchat.utils.logs.middleware import LoggingMiddleware
from pollchat.views.responses import OrjsonResponse


def create_app(
    store: Optional[KeyValueStore] = None,
    timing: Optional[TimingSettings] = None,
    clock: Optional[Callable[[], float]] = None,
) -> FastAPI:
    """Build the chat application; anything passed in replaces what lifespan would create."""
    app = FastAPI(title="pollchat", lifespan=lifespan, default_response_class=OrjsonResponse)
    app.state.store = store
    app.state.timing = timing
    app.state.clock = clock

    app.include_router(chat_router)
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(LoggingMiddleware)

    @app.get("/health", tags=["Health"])
    async def health_check(store: StoreDep):
        """Health check endpoint for load balancers and monitoring."""
        healthy = await check_store(store)
        return {"status": "healthy" if healthy else "degraded", "store": store.name}

    return app


app: FastAPI = create_app()


if __name__ == "__main__":
    uvicorn.run(
        app="pollchat.main:app",
        host=APP_HOST,
        port=APP_PORT,
        log_level="info"
    )
