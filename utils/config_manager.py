from typing import Any, Dict, List

from utils.timeframe import variant_supports_fullscreen, variant_timeframes


class ConfigManager:
    def __init__(self, config: Dict[str, Any]):
        self.config = config

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def get_symbols_url(self) -> str:
        return self.config.get("SYMBOLS_URL") or "https://nextjs-fastapi-henna.vercel.app/api/py/db"

    def get_trends_url(self) -> str:
        return self.config.get("TRENDS_URL") or "https://nextjs-fastapi-henna.vercel.app/api/py/ma5time"

    def get_chart_host(self) -> str:
        return (self.config.get("CHART_HOST") or "https://server1501.cloud").rstrip("/")

    def get_variant(self) -> str:
        return self.config.get("PAGE_VARIANT") or "standard"

    def get_timeframes(self) -> List[str]:
        return self.config.get("TIMEFRAMES") or variant_timeframes(self.get_variant())

    def supports_fullscreen(self) -> bool:
        return variant_supports_fullscreen(self.get_variant())

    def get_default_symbol(self) -> str:
        return self.config.get("DEFAULT_SYMBOL") or "XAUUSD"

    def get_request_timeout(self) -> float:
        return float(self.config.get("REQUEST_TIMEOUT", 10))

    def get_title(self) -> str:
        return self.config.get("TITLE") or "Trading1501 Filter Analysis"

    def get_display_timezone(self) -> str:
        return self.config.get("DISPLAY_TIMEZONE") or "UTC"
