"""Storefront FastAPI application.

Multi-domain web server that processes commands synchronously via HTTP.
Each request is wrapped in the correct domain context based on URL prefix.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Domains are initialized at module level so uvicorn workers share them.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from catalogue.domain import catalogue
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering
from protean.integrations.fastapi import register_exception_handlers
from shared.logging import add_context, clear_context, configure_logging

configure_logging()

catalogue.init()
ordering.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/products": catalogue,
    "/categories": catalogue,
    "/catalog": catalogue,
    "/orders": ordering,
    "/shipments": ordering,
    "/checkout": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Storefront backend: Catalogue and Ordering domains with carrier shipping",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    domain = _resolve_domain(request.url.path)
    if domain is not None:
        add_context(domain=domain.name, path=request.url.path)
        try:
            with domain.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
    # No domain match: pass through (health check, docs, etc.)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from catalogue.api import catalog_feed_router, category_router, product_router  # noqa: E402
from ordering.api import checkout_router, order_router, shipment_router  # noqa: E402

app.include_router(product_router)
app.include_router(category_router)
app.include_router(catalog_feed_router)
app.include_router(order_router)
app.include_router(shipment_router)
app.include_router(checkout_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "catalogue": {"name": catalogue.name},
                "ordering": {"name": ordering.name},
            },
        }
    )
