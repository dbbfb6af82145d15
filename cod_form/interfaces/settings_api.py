import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from cod_form.core.config import settings
from cod_form.domain.schemas import PublicSettings

router = APIRouter()
logger = logging.getLogger(__name__)


def public_settings_headers() -> dict:
    return {
        "Access-Control-Allow-Origin": "*",
        "Cache-Control": f"public, max-age={settings.SETTINGS_CACHE_TTL}",
    }


def load_public_settings(request: Request, shop: str) -> dict:
    cache = request.app.state.settings_cache
    payload = cache.get(shop)
    if payload is None:
        store = request.app.state.store_repo.get_or_create(shop)
        payload = PublicSettings.model_validate(store).to_payload()
        cache.set(shop, payload)
    return payload


@router.get("/api/settings")
@router.get("/api/settings/")
def missing_shop():
    return JSONResponse({"error": "Shop parameter is required"}, status_code=400, headers={"Access-Control-Allow-Origin": "*"})


@router.get("/api/settings/{shop}")
def read_public_settings(request: Request, shop: str):
    """Read-only widget configuration for the storefront."""
    shop = shop.strip()
    if not shop:
        return missing_shop()
    return JSONResponse(load_public_settings(request, shop), headers=public_settings_headers())
