"""OpenWeatherMap proxy with a small in-process cache."""

import logging
import os
import time

import httpx
from dotenv import load_dotenv

from .models import utcnow
from .schemas import WeatherResponse

load_dotenv()

logger = logging.getLogger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
CACHE_TTL = int(os.getenv("WEATHER_CACHE_SECONDS", "600"))
MAX_CACHE_ENTRIES = int(os.getenv("WEATHER_CACHE_MAX_ENTRIES", "256"))

# (lat, lon, units) -> (timestamp, response), oldest first
_weather_cache: dict[tuple[float, float, str], tuple[float, WeatherResponse]] = {}


class WeatherNotConfigured(RuntimeError):
    pass


class WeatherUnavailable(RuntimeError):
    pass


def cache_key(lat: float, lon: float, units: str) -> tuple[float, float, str]:
    return round(lat, 2), round(lon, 2), units


def clear_cache() -> None:
    _weather_cache.clear()


def store_in_cache(key: tuple[float, float, str], weather: WeatherResponse, now: float) -> None:
    """Insert a fresh entry, dropping expired ones and the oldest past the size cap."""
    for stale in [k for k, (fetched, _) in _weather_cache.items() if now - fetched >= CACHE_TTL]:
        del _weather_cache[stale]
    _weather_cache.pop(key, None)
    while _weather_cache and len(_weather_cache) >= MAX_CACHE_ENTRIES:
        del _weather_cache[next(iter(_weather_cache))]
    _weather_cache[key] = (now, weather)


async def fetch_current_weather(lat: float, lon: float, units: str, api_key: str) -> dict:
    """Raw current-weather payload from OpenWeatherMap."""
    params = {"lat": lat, "lon": lon, "units": units, "appid": api_key}
    async with httpx.AsyncClient(timeout=10.0) as client:
        response = await client.get(OPENWEATHER_URL, params=params)
        response.raise_for_status()
        return response.json()


def parse_weather(payload: dict, units: str) -> WeatherResponse:
    main = payload["main"]
    conditions = (payload.get("weather") or [{}])[0]
    return WeatherResponse(
        temperature=main["temp"],
        feels_like=main.get("feels_like"),
        humidity=main.get("humidity"),
        wind_speed=(payload.get("wind") or {}).get("speed"),
        condition=conditions.get("main", "Unknown"),
        description=conditions.get("description", ""),
        icon=conditions.get("icon"),
        location=payload.get("name"),
        units=units,
        fetched_at=utcnow(),
    )


async def get_weather(lat: float, lon: float, units: str = "imperial") -> WeatherResponse:
    """Current conditions for a location, served from cache when fresh."""
    key = cache_key(lat, lon, units)
    now = time.time()

    cached = _weather_cache.get(key)
    if cached and (now - cached[0]) < CACHE_TTL:
        logger.debug("Returning cached weather for %s", key)
        return cached[1].model_copy(update={"cached": True})

    api_key = os.getenv("OPENWEATHER_API_KEY")
    if not api_key:
        raise WeatherNotConfigured("OPENWEATHER_API_KEY is not set")

    logger.info("Fetching weather for lat=%s lon=%s units=%s", key[0], key[1], units)
    try:
        payload = await fetch_current_weather(key[0], key[1], units, api_key)
        weather = parse_weather(payload, units)
    except httpx.HTTPError as e:
        logger.warning("Weather request failed: %s", e)
        raise WeatherUnavailable(str(e)) from e
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Unexpected weather payload: %s", e)
        raise WeatherUnavailable("Unexpected response from weather service") from e

    store_in_cache(key, weather, now)
    return weather
