from fastapi import APIRouter, Request

from jobhunter.services.location_service import detect_country, pricing_for_country

router = APIRouter(prefix="/api", tags=["Location"])


@router.get("/user-location")
async def user_location(request: Request):
    """Visitor country and the Pro price shown to them."""
    country = await detect_country(request)
    return pricing_for_country(country).to_dict()
