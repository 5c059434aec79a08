"""
get_weather - Current weather for a city

Uses OpenWeatherMap when an API key is supplied; otherwise returns mock
data flagged with ``mock: true``.
"""

import logging
import random
from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field

from toolgate.core.timestamps import utc_now_iso
from toolgate.tools.base import BaseTool, LocalToolDefinition

logger = logging.getLogger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"

# OpenWeatherMap calls kelvin "standard"
_OPENWEATHER_UNITS = {"metric": "metric", "imperial": "imperial", "kelvin": "standard"}


class WeatherParameters(BaseModel):
    city: str = Field(..., min_length=1)
    apiKey: str | None = None
    units: Literal["metric", "imperial", "kelvin"] = "metric"


class GetWeatherTool(BaseTool):
    """Weather lookup with a mock fallback."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, timeout_seconds: float = 10.0):
        self._transport = transport
        self._timeout_seconds = timeout_seconds

    @property
    def definition(self) -> LocalToolDefinition:
        return LocalToolDefinition(
            name="get_weather",
            description="Get weather information for a specific city using OpenWeatherMap API",
            input_schema={
                "type": "object",
                "properties": {
                    "city": {
                        "type": "string",
                        "description": "The city name to get weather for",
                    },
                    "apiKey": {
                        "type": "string",
                        "description": "OpenWeatherMap API key (optional, uses demo data if not provided)",
                    },
                    "units": {
                        "type": "string",
                        "description": "Temperature units (metric, imperial, kelvin)",
                        "enum": ["metric", "imperial", "kelvin"],
                        "default": "metric",
                    },
                },
                "required": ["city"],
            },
            structured_schema=WeatherParameters,
            executor=self.execute,
        )

    async def execute(self, parameters: dict[str, Any]) -> dict[str, Any]:
        params = WeatherParameters.model_validate(parameters)

        if not params.apiKey:
            return {
                "success": True,
                "mock": True,
                "city": params.city,
                "temperature": random.randint(10, 39),
                "description": "Mock weather data - partly cloudy",
                "humidity": random.randint(30, 79),
                "units": params.units,
                "timestamp": utc_now_iso(),
            }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout_seconds) as client:
                response = await client.get(
                    OPENWEATHER_URL,
                    params={
                        "q": params.city,
                        "appid": params.apiKey,
                        "units": _OPENWEATHER_UNITS[params.units],
                    },
                )
                response.raise_for_status()
                data = response.json()
            return {
                "success": True,
                "city": data["name"],
                "country": data.get("sys", {}).get("country"),
                "temperature": data["main"]["temp"],
                "description": data["weather"][0]["description"],
                "humidity": data["main"]["humidity"],
                "pressure": data["main"].get("pressure"),
                "windSpeed": (data.get("wind") or {}).get("speed", 0),
                "units": params.units,
                "timestamp": utc_now_iso(),
            }
        except (httpx.HTTPError, ValueError, KeyError, IndexError) as exc:
            logger.info(f"Weather lookup for {params.city} failed: {exc!r}")
            return {
                "success": False,
                "error": str(exc) or type(exc).__name__,
                "city": params.city,
                "temperature": 0,
                "description": "",
                "humidity": 0,
                "units": params.units,
                "timestamp": utc_now_iso(),
            }


__all__ = ["GetWeatherTool", "WeatherParameters"]
