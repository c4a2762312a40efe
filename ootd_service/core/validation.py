"""
Input Validation Module (v3.0.0)
Request schema for outfit generation.

Validation failures surface as ValidationError with field-level details:
[{"field": "userId", "message": "Invalid user ID format"}, ...]
"""
import uuid
import logging
from typing import Any, List, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, field_validator
from pydantic import ValidationError as PydanticValidationError

from ootd_service.core.errors import ValidationError

logger = logging.getLogger(__name__)

# Configuration
MAX_PROMPT_LENGTH = 1000

Number = Union[StrictInt, StrictFloat]


def _check_uuid(value: str, message: str) -> str:
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        raise ValueError(message)
    return value


def _check_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("Invalid url")
    return value


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ==================== NESTED SCHEMAS ====================

class WeatherData(_Schema):
    temperature: Number
    condition: str
    description: str
    icon: Optional[str] = None
    humidity: Optional[Number] = None
    wind_speed: Optional[Number] = Field(default=None, alias="windSpeed")


class UserPreferences(_Schema):
    body_type: Optional[str] = None
    style_preferences: Optional[Any] = None
    favorite_colors: Optional[Any] = None


class PinterestPin(_Schema):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    link: Optional[str] = None

    _urls = field_validator("image_url", "link")(_check_url)


class SelectedItem(_Schema):
    id: str
    category: str
    color: str
    image_url: Optional[str] = None

    @field_validator("id")
    @classmethod
    def _id_is_uuid(cls, value: str) -> str:
        return _check_uuid(value, "Invalid item ID format")

    _urls = field_validator("image_url")(_check_url)


class PurchaseLink(_Schema):
    store_name: str = Field(min_length=1)
    price: Optional[str] = None
    url: Optional[str] = None

    _urls = field_validator("url")(_check_url)


# ==================== REQUEST SCHEMA ====================

class GenerateOutfitRequest(_Schema):
    """Body of POST /generate-outfit."""

    prompt: str
    mood: Optional[str] = None
    user_id: str = Field(alias="userId")
    is_public: StrictBool = Field(default=True, alias="isPublic")
    pinterest_board_id: Optional[str] = Field(default=None, alias="pinterestBoardId")
    selected_items: Optional[List[SelectedItem]] = Field(default=None, alias="selectedItem")
    purchase_links: Optional[List[PurchaseLink]] = Field(default=None, alias="purchaseLinks")
    weather_data: Optional[WeatherData] = Field(default=None, alias="weatherData")
    user_preferences: Optional[UserPreferences] = Field(default=None, alias="userPreferences")
    pinterest_context: Optional[str] = Field(default=None, alias="pinterestContext")
    pinterest_pins: Optional[List[PinterestPin]] = Field(default=None, alias="pinterestPins")
    generate_image: StrictBool = Field(default=False, alias="generateImage")

    @field_validator("prompt")
    @classmethod
    def _prompt_length(cls, value: str) -> str:
        if len(value) < 1:
            raise ValueError("Prompt is required")
        if len(value) > MAX_PROMPT_LENGTH:
            raise ValueError("Prompt too long")
        return value

    @field_validator("user_id")
    @classmethod
    def _user_id_is_uuid(cls, value: str) -> str:
        return _check_uuid(value, "Invalid user ID format")

    @field_validator("selected_items", mode="before")
    @classmethod
    def _single_item_as_list(cls, value: Any) -> Any:
        # A single pinned item is accepted as well as an array
        if isinstance(value, dict):
            return [value]
        return value

    @property
    def pinned_ids(self) -> List[str]:
        if not self.selected_items:
            return []
        return [item.id for item in self.selected_items]


# ==================== PARSING ====================

def _format_errors(exc: PydanticValidationError) -> List[dict]:
    details = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "body"
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": field, "message": message})
    return details


def parse_generate_request(body: Any) -> GenerateOutfitRequest:
    """
    Validate a decoded JSON body.

    Args:
        body: Result of json.loads on the request body

    Returns:
        Validated GenerateOutfitRequest

    Raises:
        ValidationError: With field-level details
    """
    if not isinstance(body, dict):
        raise ValidationError(
            "Invalid request data",
            details=[{"field": "body", "message": "Expected a JSON object"}],
        )

    try:
        return GenerateOutfitRequest.model_validate(body)
    except PydanticValidationError as e:
        details = _format_errors(e)
        logger.info(f"Request validation failed: {details}")
        raise ValidationError("Invalid request data", details=details)
