"""
LLM Configuration Layer (v1.1.0)
Per-stage model config for the outfit pipeline.

All stages talk to the same OpenAI-compatible AI gateway; each stage picks its
own model and sampling parameters.

Environment Variables (per stage: CLASSIFIER, REQUIREMENTS, GENERATOR, IMAGE):
    - OOTD_<STAGE>_MODEL: Override default model
    - OOTD_<STAGE>_TEMPERATURE: Override temperature
    - OOTD_<STAGE>_MAX_TOKENS: Override max output tokens
"""
import os
import logging
from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)


# ==================== ENUMS ====================

class PipelineStage(Enum):
    """Gateway call sites in the generation pipeline."""
    CLASSIFIER = "classifier"      # AI call 1: request classification
    REQUIREMENTS = "requirements"  # AI call 2: requirements synthesis
    GENERATOR = "generator"        # AI call 3: candidate generation + scoring
    IMAGE = "image"                # Optional hero image


# ==================== DEFAULTS ====================

TEXT_MODEL = "google/gemini-2.5-flash"
IMAGE_MODEL = "google/gemini-2.5-flash-image-preview"

STAGE_DEFAULTS: Dict[PipelineStage, dict] = {
    PipelineStage.CLASSIFIER: {"model": TEXT_MODEL, "temperature": 0.2, "max_tokens": 800},
    PipelineStage.REQUIREMENTS: {"model": TEXT_MODEL, "temperature": 0.3, "max_tokens": 1500},
    PipelineStage.GENERATOR: {"model": TEXT_MODEL, "temperature": 0.7, "max_tokens": 4000},
    PipelineStage.IMAGE: {"model": IMAGE_MODEL, "temperature": 0.8, "max_tokens": 1000},
}


# ==================== ACTIVE CONFIG ====================

@dataclass
class StageConfig:
    """Resolved model configuration for one pipeline stage."""
    stage: PipelineStage
    model: str
    temperature: float
    max_tokens: int

    @classmethod
    def from_env(cls, stage: PipelineStage) -> "StageConfig":
        """Resolve configuration from environment variables."""
        defaults = STAGE_DEFAULTS[stage]
        prefix = f"OOTD_{stage.name}"

        config = cls(
            stage=stage,
            model=os.getenv(f"{prefix}_MODEL", defaults["model"]),
            temperature=float(os.getenv(f"{prefix}_TEMPERATURE", str(defaults["temperature"]))),
            max_tokens=int(os.getenv(f"{prefix}_MAX_TOKENS", str(defaults["max_tokens"]))),
        )

        logger.info(f"LLM Config [{stage.value}]: model={config.model}")
        return config

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


# ==================== SINGLETON INSTANCES ====================

_stage_configs: Dict[PipelineStage, StageConfig] = {}


def get_stage_config(stage: PipelineStage) -> StageConfig:
    """Get active configuration for a pipeline stage."""
    config: Optional[StageConfig] = _stage_configs.get(stage)
    if config is None:
        config = StageConfig.from_env(stage)
        _stage_configs[stage] = config
    return config


def reset_stage_configs():
    """Reset all configs (for testing)."""
    _stage_configs.clear()


def get_all_configs_dict() -> dict:
    """Get all stage configs as dict for /health endpoint."""
    return {stage.value: get_stage_config(stage).to_dict() for stage in PipelineStage}
