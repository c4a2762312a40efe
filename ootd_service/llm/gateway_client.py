"""
AI Gateway Client (v1.0.0)
OpenAI-compatible chat completions against the AI gateway.

Gateway HTTP failures are translated into the pipeline's error taxonomy here;
raw upstream bodies are logged and never passed on.
"""
import logging
from typing import Dict, Optional, Tuple

from openai import AsyncOpenAI, APIConnectionError, APIStatusError

from ootd_service.config.llm_config import StageConfig
from ootd_service.config.settings import get_settings
from ootd_service.core.errors import UpstreamCreditsExhausted, UpstreamError, UpstreamThrottled
from ootd_service.observability.metrics import estimate_cost, record_ai_call

logger = logging.getLogger(__name__)


# ==================== SHARED SDK CLIENTS ====================

_sdk_clients: Dict[Tuple[str, str], AsyncOpenAI] = {}


def get_sdk_client(api_key: str, base_url: str) -> AsyncOpenAI:
    """Get the process-wide AsyncOpenAI for a gateway; one connection pool per (key, url)."""
    key = (api_key, base_url)
    if key not in _sdk_clients:
        # Retries are handled by llm.retry
        _sdk_clients[key] = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        logger.info(f"Gateway SDK client created: {base_url}")
    return _sdk_clients[key]


async def close_sdk_clients() -> None:
    """Close every shared client (called on shutdown)."""
    clients = list(_sdk_clients.values())
    _sdk_clients.clear()
    for client in clients:
        await client.close()


def _map_status_error(stage: str, error: APIStatusError) -> Exception:
    status = error.status_code
    try:
        body = error.response.text[:500]
    except Exception:
        body = str(error)
    logger.error(f"Gateway error [{stage}]: status={status} body={body}")

    if status == 429:
        return UpstreamThrottled("AI service is busy. Please try again in a moment.")
    if status == 402:
        return UpstreamCreditsExhausted("AI credits exhausted. Please contact support.")
    return UpstreamError(f"AI service request failed ({status})", upstream_status=status)


class GatewayClient:
    """
    Per-request view of the gateway: usage counters over a shared SDK client.

    Usage:
        client = GatewayClient()
        text = await client.complete(get_stage_config(PipelineStage.CLASSIFIER), system, user)
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        settings = get_settings()
        self.api_key = api_key or settings.ai_gateway_api_key
        self.base_url = base_url or settings.ai_gateway_url
        self._client: Optional[AsyncOpenAI] = None
        self.calls = 0
        self.tokens = 0
        self.cost_usd = 0.0

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            # 401-equivalent so the retry layer does not retry it
            raise UpstreamError("AI gateway is not configured", upstream_status=401)

        if self._client is None:
            self._client = get_sdk_client(self.api_key, self.base_url)
        return self._client

    def _track(self, config: StageConfig, response) -> None:
        usage = getattr(response, "usage", None)
        tokens = getattr(usage, "total_tokens", 0) or 0
        cost = estimate_cost(config.model, tokens)

        self.calls += 1
        self.tokens += tokens
        self.cost_usd += cost
        record_ai_call(config.stage.value, tokens, cost)

    async def complete(
        self,
        config: StageConfig,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = True,
    ) -> str:
        """
        Run one chat completion.

        Args:
            config: Stage model settings
            system_prompt: Instructions
            user_prompt: Request-specific content
            json_mode: Ask the gateway for a JSON object

        Returns:
            Raw message content

        Raises:
            UpstreamThrottled, UpstreamCreditsExhausted, UpstreamError
        """
        client = self._get_client()
        stage = config.stage.value

        kwargs = {
            "model": config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info(f"Calling gateway [{stage}]: model={config.model}")

        try:
            response = await client.chat.completions.create(**kwargs)
        except APIStatusError as e:
            raise _map_status_error(stage, e)
        except APIConnectionError as e:
            logger.error(f"Gateway unreachable [{stage}]: {e}")
            raise UpstreamError("AI service is unreachable", upstream_status=None)

        self._track(config, response)
        return response.choices[0].message.content or ""

    async def generate_image(self, config: StageConfig, prompt: str) -> Optional[str]:
        """
        Ask the image model for a picture.

        Returns:
            Image URL (usually a data: URL), or None if the model sent none
        """
        client = self._get_client()
        stage = config.stage.value

        logger.info(f"Calling gateway [{stage}]: model={config.model}")

        try:
            response = await client.chat.completions.create(
                model=config.model,
                messages=[{"role": "user", "content": prompt}],
                extra_body={"modalities": ["image", "text"]},
            )
        except APIStatusError as e:
            raise _map_status_error(stage, e)
        except APIConnectionError as e:
            logger.error(f"Gateway unreachable [{stage}]: {e}")
            raise UpstreamError("AI service is unreachable", upstream_status=None)

        self._track(config, response)

        # Images arrive as an extra field on the message
        images = getattr(response.choices[0].message, "images", None) or []
        for image in images:
            url = (image.get("image_url") or {}).get("url") if isinstance(image, dict) else None
            if url:
                return url
        return None
