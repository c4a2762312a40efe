"""
Prompt context blocks shared by the pipeline stages.
"""
import json
from typing import Any, Dict, List, Optional

from ootd_service.services.weather import WeatherInfo


def _as_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def format_request(prompt: str, mood: Optional[str]) -> str:
    lines = [f'USER REQUEST: "{prompt}"']
    if mood:
        lines.append(f"MOOD: {mood}")
    return "\n".join(lines)


def format_weather(weather: Optional[WeatherInfo]) -> str:
    if weather is None:
        return "WEATHER: not provided"
    return weather.to_prompt_context().replace("Weather:", "WEATHER:", 1)


def format_profile(profile: Dict[str, Any]) -> str:
    if not profile:
        return "USER PROFILE: no stored preferences"

    labels = {
        "body_type": "Body type",
        "style_preferences": "Style preferences",
        "favorite_colors": "Favorite colors",
        "location": "Location",
    }
    lines = ["USER PROFILE:"]
    for key, label in labels.items():
        if profile.get(key):
            lines.append(f"- {label}: {_as_text(profile[key])}")
    return "\n".join(lines)


def format_liked_history(history: List[dict]) -> str:
    if not history:
        return "STYLE HISTORY: no liked outfits yet"

    lines = ["STYLE HISTORY (outfits the user liked):"]
    for entry in history:
        details = [entry.get("title") or "untitled"]
        for key in ("occasion", "style", "style_context", "mood"):
            if entry.get(key):
                details.append(f"{key}={entry[key]}")
        lines.append(f"- {'; '.join(details)}")
    return "\n".join(lines)


def format_json_block(title: str, data: Any) -> str:
    return f"{title}:\n{json.dumps(data, ensure_ascii=False, indent=2)}"
