from typing import Literal

from fastapi import APIRouter, HTTPException, Query

from .. import weather
from ..schemas import WeatherResponse

router = APIRouter(prefix="/api", tags=["weather"])


@router.get("/weather", response_model=WeatherResponse)
async def current_weather(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
    units: Literal["imperial", "metric", "standard"] = "imperial",
):
    try:
        return await weather.get_weather(lat, lon, units)
    except weather.WeatherNotConfigured:
        raise HTTPException(status_code=503, detail="Weather service is not configured")
    except weather.WeatherUnavailable as e:
        raise HTTPException(status_code=502, detail=f"Weather service error: {e}")
