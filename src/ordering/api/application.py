"""FastAPI application factory for the Ordering domain.

Commands are processed synchronously inside the request; every request is
wrapped in the domain's context so handlers and repositories resolve against
the right configuration.
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.domain import Domain

from ordering.api.errors import register_exception_handlers
from ordering.api.routes import admin_router, order_router
from ordering.utils.logging import bind_request_context, clear_request_context


def build_app(domain: Domain) -> FastAPI:
    app = FastAPI(
        title="Coffee Orders API",
        description="Order placement and lifecycle for the coffee storefront",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the ordering domain context and tag log events with the request."""
        request_id = request.headers.get("x-request-id") or uuid4().hex
        bind_request_context(request_id=request_id, method=request.method, path=request.url.path)
        try:
            with domain.domain_context():
                response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-Id"] = request_id
        return response

    app.include_router(order_router)
    app.include_router(admin_router)
    register_exception_handlers(app)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": domain.name})

    return app
