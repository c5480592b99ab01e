import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gst_pricing import __version__
from gst_pricing.config.settings import configure_logging
from gst_pricing.api.documents_api import router as documents_router
from gst_pricing.api.state import settings, tax_catalog

configure_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="GST Pricing API",
    description="Line item and document tax calculation for GST documents",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents_router)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/")
async def root():
    return {"status": "online", "message": "GST Pricing API Active"}


@app.get("/api/tax-options")
async def get_tax_options():
    return [
        {"label": o.label, "display": o.display, "rate": o.rate, "regime": o.regime}
        for o in tax_catalog.options()
    ]


@app.get("/api/document-types")
async def get_document_types():
    return {
        key: {"name": profile.name, "includeShipping": profile.include_shipping}
        for key, profile in settings.document_profiles.items()
    }


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "tax_options": len(tax_catalog.options()),
        "tax_catalog": str(settings.tax_catalog_path),
        "default_supply_mode": settings.default_supply_mode,
    }
