"""
Weather Service (v3.0.0)
Weather context for outfit generation.

Request-supplied weather is used as-is. Without it, the profile location is
geocoded and current conditions are fetched from Open-Meteo (no API key).
"""
import logging
from typing import Optional, Any
from dataclasses import dataclass
import httpx

logger = logging.getLogger(__name__)

# Configuration
GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
TIMEOUT_SECONDS = 10.0

# WMO weather interpretation codes
WMO_CODES = {
    0: ("Clear", "Clear sky", "01d"),
    1: ("Mainly Clear", "Mainly clear", "01d"),
    2: ("Partly Cloudy", "Partly cloudy", "02d"),
    3: ("Overcast", "Overcast", "03d"),
    45: ("Foggy", "Fog", "50d"),
    48: ("Foggy", "Depositing rime fog", "50d"),
    51: ("Drizzle", "Light drizzle", "09d"),
    53: ("Drizzle", "Moderate drizzle", "09d"),
    55: ("Drizzle", "Dense drizzle", "09d"),
    61: ("Rain", "Slight rain", "10d"),
    63: ("Rain", "Moderate rain", "10d"),
    65: ("Rain", "Heavy rain", "10d"),
    71: ("Snow", "Slight snow fall", "13d"),
    73: ("Snow", "Moderate snow fall", "13d"),
    75: ("Snow", "Heavy snow fall", "13d"),
    77: ("Snow", "Snow grains", "13d"),
    80: ("Rain Showers", "Slight rain showers", "09d"),
    81: ("Rain Showers", "Moderate rain showers", "09d"),
    82: ("Rain Showers", "Violent rain showers", "09d"),
    85: ("Snow Showers", "Slight snow showers", "13d"),
    86: ("Snow Showers", "Heavy snow showers", "13d"),
    95: ("Thunderstorm", "Thunderstorm", "11d"),
    96: ("Thunderstorm", "Thunderstorm with slight hail", "11d"),
    99: ("Thunderstorm", "Thunderstorm with heavy hail", "11d"),
}
UNKNOWN_WEATHER = ("Unknown", "Weather condition unknown", "01d")


@dataclass
class WeatherInfo:
    """Weather information for outfit recommendations."""
    temperature: float  # Celsius
    condition: str
    description: str
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None  # km/h
    icon: Optional[str] = None
    location: Optional[str] = None
    source: str = "request"
    layer_hint: str = "medium"  # "light", "medium", "heavy"

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "condition": self.condition,
            "description": self.description,
            "humidity": self.humidity,
            "windSpeed": self.wind_speed,
            "icon": self.icon,
            "location": self.location,
            "source": self.source,
            "layer_hint": self.layer_hint,
        }

    def to_prompt_context(self) -> str:
        """Generate context string for LLM prompt."""
        parts = [f"{self.description} ({self.condition})", f"{self.temperature:.0f}°C"]
        if self.location:
            parts.insert(0, self.location)
        if self.humidity is not None:
            parts.append(f"humidity {self.humidity:.0f}%")
        if self.wind_speed is not None:
            parts.append(f"wind {self.wind_speed:.0f} km/h")
        return f"Weather: {', '.join(parts)}. Recommended clothing weight: {self.layer_hint}."


def _derive_layer_hint(temp: float, condition: str, wind_speed: Optional[float]) -> str:
    """
    Derive clothing layer recommendation based on weather.

    Returns:
        "light", "medium", or "heavy"
    """
    condition = condition.lower()
    # Wind chill effect (km/h)
    effective_temp = temp - (wind_speed / 3.6 * 0.5) if wind_speed and wind_speed > 18 else temp

    if any(word in condition for word in ("rain", "drizzle", "thunderstorm")):
        effective_temp -= 3  # Rain feels colder
    elif "snow" in condition:
        effective_temp -= 5

    if effective_temp >= 25:
        return "light"
    elif effective_temp >= 15:
        return "medium"
    else:
        return "heavy"


def from_request(weather_data: Any) -> Optional[WeatherInfo]:
    """Build WeatherInfo from the validated request weatherData."""
    if weather_data is None:
        return None

    info = WeatherInfo(
        temperature=float(weather_data.temperature),
        condition=weather_data.condition,
        description=weather_data.description,
        humidity=weather_data.humidity,
        wind_speed=weather_data.wind_speed,
        icon=weather_data.icon,
        source="request",
    )
    info.layer_hint = _derive_layer_hint(info.temperature, info.condition, info.wind_speed)
    return info


def describe_wmo_code(code: Optional[int]) -> tuple:
    return WMO_CODES.get(code, UNKNOWN_WEATHER)


async def get_weather(location: str) -> Optional[WeatherInfo]:
    """
    Fetch current weather for a place name.

    Args:
        location: City or place (e.g., "Stockholm")

    Returns:
        WeatherInfo or None if failed
    """
    try:
        async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
            geo = await client.get(
                GEOCODE_URL,
                params={"name": location, "count": 1, "language": "en", "format": "json"},
            )
            geo.raise_for_status()
            results = geo.json().get("results") or []
            if not results:
                logger.warning(f"Location not found: {location}")
                return None

            place = results[0]
            response = await client.get(
                FORECAST_URL,
                params={
                    "latitude": place["latitude"],
                    "longitude": place["longitude"],
                    "current": "temperature_2m,relative_humidity_2m,weather_code,wind_speed_10m",
                    "timezone": "auto",
                },
            )
            response.raise_for_status()
            current = response.json().get("current", {})

            condition, description, icon = describe_wmo_code(current.get("weather_code"))
            temp = round(current.get("temperature_2m", 20))
            wind_speed = current.get("wind_speed_10m")

            weather_info = WeatherInfo(
                temperature=temp,
                condition=condition,
                description=description,
                humidity=current.get("relative_humidity_2m"),
                wind_speed=wind_speed,
                icon=icon,
                location=place.get("name", location),
                source="open-meteo",
                layer_hint=_derive_layer_hint(temp, condition, wind_speed),
            )

            logger.info(f"Weather: {weather_info.location} - {weather_info.temperature}°C, {weather_info.layer_hint}")
            return weather_info

    except httpx.TimeoutException:
        logger.warning(f"Weather API timeout for {location}")
        return None
    except Exception as e:
        logger.error(f"Weather API error for {location}: {e}")
        return None


async def resolve_weather(weather_data: Any, location: Optional[str]) -> Optional[WeatherInfo]:
    """Request weather wins; otherwise look up the profile location."""
    info = from_request(weather_data)
    if info is not None:
        return info
    if location:
        return await get_weather(location)
    return None
