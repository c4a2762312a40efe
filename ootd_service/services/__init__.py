# Services module
from ootd_service.services.weather import WeatherInfo, get_weather, resolve_weather
from ootd_service.services.pinterest import TrendContext, build_trend_context
from ootd_service.services.enrichment import schedule_enrichment
