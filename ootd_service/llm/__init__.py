# LLM module
from ootd_service.llm.gateway_client import GatewayClient
from ootd_service.llm.retry import with_retry, with_configured_retry
from ootd_service.llm.classifier import classify
from ootd_service.llm.requirements import synthesize_requirements
from ootd_service.llm.candidates import generate_candidates
from ootd_service.llm.hero_image import generate_hero_image
