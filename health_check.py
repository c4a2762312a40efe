"""OOTD System Health Check"""
print("=" * 60)
print("OOTD SYSTEM HEALTH CHECK")
print("=" * 60)

errors = []
warnings = []

# 1. Core Imports
try:
    from ootd_service.app.main import app
    print("[OK] FastAPI app loads")
except Exception as e:
    errors.append(f"FastAPI app: {e}")
    print(f"[FAIL] FastAPI app: {e}")

# 2. Orchestrator
try:
    from ootd_service.core.orchestrator import generate_outfit
    print("[OK] Orchestrator loads")
except Exception as e:
    errors.append(f"Orchestrator: {e}")
    print(f"[FAIL] Orchestrator: {e}")

# 3. Style contexts
try:
    from ootd_service.core.style_context import CONTEXTS, detect_context
    sample = detect_context("Outfit for a business meeting")
    print(f"[OK] Style contexts: {len(CONTEXTS)} ({sample.name} detected for sample prompt)")
except Exception as e:
    errors.append(f"Style contexts: {e}")
    print(f"[FAIL] Style contexts: {e}")

# 4. Config
try:
    from ootd_service.config import get_settings, validate_gateway_config
    settings = get_settings()
    config_warnings = validate_gateway_config()
    warnings.extend(config_warnings)
    if config_warnings:
        print(f"[WARN] Config loads with {len(config_warnings)} warning(s)")
    else:
        print("[OK] Config loads")
except Exception as e:
    errors.append(f"Config: {e}")
    print(f"[FAIL] Config: {e}")

# 5. Stage models
try:
    from ootd_service.config.llm_config import get_all_configs_dict
    for stage, config in get_all_configs_dict().items():
        print(f"[OK] Stage {stage}: {config['model']}")
except Exception as e:
    errors.append(f"Stage config: {e}")
    print(f"[FAIL] Stage config: {e}")

# 6. MongoDB (optional)
try:
    from ootd_service.db import mongo
    connected = mongo.connect()
    if connected:
        print("[OK] MongoDB connected")
    else:
        warnings.append("MongoDB not connected (generation will fail with WARDROBE_UNAVAILABLE)")
        print("[WARN] MongoDB not connected")
except Exception as e:
    warnings.append(f"MongoDB: {e}")
    print(f"[WARN] MongoDB: {e}")

# 7. Cache
try:
    from ootd_service.cache import cache_manager
    status = cache_manager.get_status()
    print(f"[OK] Cache system: enabled={status['enabled']}, live entries={status['live_entries']}")
except Exception as e:
    errors.append(f"Cache: {e}")
    print(f"[FAIL] Cache: {e}")

print("")
print("=" * 60)
print("SUMMARY")
print("=" * 60)
print(f"Errors:   {len(errors)}")
print(f"Warnings: {len(warnings)}")
if len(errors) == 0:
    print("")
    print(">>> SYSTEM READY TO RUN <<<")
else:
    print("")
    print(">>> SYSTEM HAS ERRORS <<<")
    for e in errors:
        print(f"  - {e}")
