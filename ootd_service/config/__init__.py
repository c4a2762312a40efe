# Config module
from ootd_service.config.settings import get_settings, reload_settings, Settings
from ootd_service.config.providers import get_gateway_status, validate_gateway_config
from ootd_service.config.llm_config import (
    PipelineStage,
    StageConfig,
    get_stage_config,
    get_all_configs_dict,
    reset_stage_configs,
)
