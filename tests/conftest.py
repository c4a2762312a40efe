"""
Shared fixtures: no database, fresh settings/limiter/metrics per test, and a
scripted stand-in for the AI gateway.
"""
import json
import pytest
import jwt
from unittest.mock import patch

from ootd_service.config import reload_settings, reset_stage_configs
from ootd_service.core.rate_limit import reset_rate_limiter
from ootd_service.observability import reset_metrics

USER_ID = "0b7d4a52-6f1e-4c3a-9d2b-8e5f1a3c7d90"
OTHER_USER_ID = "9c1e2f3a-4b5d-4e6f-8a7b-0c1d2e3f4a5b"

SHIRT_ID = "11111111-1111-4111-8111-111111111111"
TROUSERS_ID = "22222222-2222-4222-8222-222222222222"
OXFORDS_ID = "33333333-3333-4333-8333-333333333333"
SNEAKERS_ID = "44444444-4444-4444-8444-444444444444"
HOODIE_ID = "55555555-5555-4555-8555-555555555555"

TEST_JWT_SECRET = "ootd-test-signing-secret-0123456789abcdef"


@pytest.fixture(autouse=True)
def service_env(monkeypatch):
    """Isolate every test from the environment and from MongoDB."""
    monkeypatch.setenv("OOTD_LOGGING_ENABLED", "false")
    for name in (
        "OOTD_JWT_SECRET",
        "OOTD_SERVICE_KEY",
        "OOTD_AI_GATEWAY_API_KEY",
        "OOTD_CACHE_ENABLED",
        "OOTD_RATE_LIMIT_MAX_REQUESTS",
        "PINTEREST_ACCESS_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)

    reload_settings()
    reset_stage_configs()
    reset_rate_limiter()
    reset_metrics()

    with patch("ootd_service.db.mongo.get_collection", return_value=None), \
         patch("ootd_service.db.mongo.health_check", return_value={"status": "disconnected", "reason": "tests"}):
        yield


def make_token(subject: str = USER_ID, secret: str = TEST_JWT_SECRET) -> str:
    return jwt.encode({"sub": subject, "role": "authenticated"}, secret, algorithm="HS256")


def clothing(item_id: str, category: str, color: str, style: str, **extra) -> dict:
    item = {
        "id": item_id,
        "user_id": USER_ID,
        "category": category,
        "color": color,
        "style": style,
        "image_url": f"https://cdn.ootd.app/clothes/{item_id}.png",
        "ai_detected_metadata": None,
    }
    item.update(extra)
    return item


@pytest.fixture
def wardrobe_items():
    """Mixed wardrobe: three business-appropriate pieces and two casual ones."""
    return [
        clothing(SHIRT_ID, "White Dress Shirt", "white", "business"),
        clothing(TROUSERS_ID, "Navy Trousers", "navy", "business"),
        clothing(OXFORDS_ID, "Brown Oxford Shoes", "brown", "formal"),
        clothing(SNEAKERS_ID, "White Sneakers", "white", "casual"),
        clothing(HOODIE_ID, "Grey Hoodie", "grey", "casual"),
    ]


CLASSIFICATION = {
    "occasion": "business meeting",
    "formality_level": "business",
    "style": "classic",
    "season": "all",
    "weather_considerations": "none",
    "color_preferences": ["navy", "white"],
}

REQUIREMENTS = {
    "required_categories": ["top", "bottom", "footwear"],
    "optional_categories": ["outerwear"],
    "color_palette": {"primary": ["navy"], "accent": ["white"], "avoid": ["neon"]},
    "style_rules": ["keep it tailored"],
}


def candidate(title: str, item_ids, score: float) -> dict:
    return {
        "title": title,
        "items": [{"item_id": item_id} for item_id in item_ids],
        "description": f"{title} description",
        "color_harmony": "navy and white",
        "styling_tips": ["tuck the shirt in"],
        "reasoning": f"{title} fits the meeting",
        "score": score,
        "score_breakdown": {
            "style_match": score,
            "weather_appropriateness": score,
            "color_harmony": score,
            "requirements_fulfillment": score,
        },
    }


def gateway_responses(candidates=None) -> dict:
    if candidates is None:
        candidates = [
            candidate("Boardroom Classic", [SHIRT_ID, TROUSERS_ID, OXFORDS_ID], 0.92),
            candidate("Relaxed Office", [SHIRT_ID, TROUSERS_ID, SNEAKERS_ID], 0.71),
        ]
    return {
        "classifier": json.dumps(CLASSIFICATION),
        "requirements": json.dumps(REQUIREMENTS),
        "generator": json.dumps({"candidates": candidates}),
    }


class FakeGateway:
    """
    Scripted gateway: one canned response (or exception) per stage.

    Records the stages called and the user prompt each one received.
    """

    def __init__(self, responses: dict, image_url=None):
        self.responses = responses
        self.image_url = image_url
        self.stages = []
        self.prompts = {}
        self.tokens = 0
        self.cost_usd = 0.0

    async def complete(self, config, system_prompt, user_prompt, json_mode=True):
        stage = config.stage.value
        self.stages.append(stage)
        self.prompts[stage] = user_prompt
        response = self.responses[stage]
        if isinstance(response, Exception):
            raise response
        return response

    async def generate_image(self, config, prompt):
        self.stages.append(config.stage.value)
        self.prompts[config.stage.value] = prompt
        return self.image_url


@pytest.fixture
def fake_gateway():
    return FakeGateway(gateway_responses())
