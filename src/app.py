"""Storefront FastAPI application.

Web server for checkout, order administration and payment webhooks. Commands
are processed synchronously; every request runs inside the ordering domain
context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the domain.toml overlay (memory by default, PostgreSQL
# in production).
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering  # noqa: E402
from ordering.utils.logging import add_context, clear_context, configure_logging

configure_logging()
ordering.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Checkout, order lifecycle and payment reconciliation",
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
    """Push the ordering domain context and request log context for each request."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    with ordering.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers and error handling
# ---------------------------------------------------------------------------
from ordering.api import checkout_router, order_router, payment_router, stock_router  # noqa: E402
from ordering.api.errors import register_error_handlers  # noqa: E402

app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(stock_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    from payments.gateway import get_gateway

    return JSONResponse(
        content={
            "status": "ok",
            "domain": ordering.name,
            "gateway": type(get_gateway()).__name__,
        }
    )
