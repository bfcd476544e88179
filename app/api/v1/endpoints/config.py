"""
Configuración pública para el cliente web.
"""

from fastapi import APIRouter

from app.api.v1.schemas.catalog_schemas import SquareConfigResponse
from app.core.config import get_settings

router = APIRouter(prefix="/config", tags=["Config"])


@router.get("/square", response_model=SquareConfigResponse, summary="Square Web Payments config")
async def get_square_config():
    """
    Datos que necesita el SDK web de Square para tokenizar tarjetas.

    No expone secretos: el access token nunca sale del servidor.
    """
    settings = get_settings()
    return {
        "application_id": settings.SQUARE_APPLICATION_ID,
        "location_id": settings.SQUARE_LOCATION_ID,
        "environment": settings.SQUARE_ENVIRONMENT,
    }
