"""
core/initialization.py
----------------------
Loads configuration from .env, normalizes timeframes, and wires all
runtime components with simple dependency-injection (DI) overrides.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from dotenv import load_dotenv

from core.dashboard import Dashboard
from modules.chart_resolver import ChartImageResolver, ImageProber
from modules.rest_client import DashboardApiClient
from modules.symbol_catalog import SymbolCatalogLoader
from modules.trend_signals import TrendSignalLoader
from utils.config_manager import ConfigManager
from utils.config_validator import validate_config
from utils.logger import setup_logger
from utils.timeframe import normalize_tf, variant_timeframes


def load_configuration(env_path: str = "config.env") -> Dict:
    """
    Load settings from an .env-style file and return a structured config dict.
    A missing file is fine; process environment and defaults still apply.
    """
    log = logging.getLogger(__name__)
    load_dotenv(dotenv_path=env_path)

    variant = os.getenv("PAGE_VARIANT", "standard").strip().lower() or "standard"
    timeframes_raw = os.getenv("TIMEFRAMES", "")
    timeframes = [normalize_tf(t) for t in timeframes_raw.split(",") if t.strip()]

    conf: Dict[str, object] = {
        "SYMBOLS_URL": os.getenv("SYMBOLS_URL", "https://nextjs-fastapi-henna.vercel.app/api/py/db"),
        "TRENDS_URL": os.getenv("TRENDS_URL", "https://nextjs-fastapi-henna.vercel.app/api/py/ma5time"),
        "CHART_HOST": os.getenv("CHART_HOST", "https://server1501.cloud"),
        "PAGE_VARIANT": variant,
        "TIMEFRAMES": timeframes or variant_timeframes(variant),
        "DEFAULT_SYMBOL": os.getenv("DEFAULT_SYMBOL", "XAUUSD").strip().upper(),
        "REQUEST_TIMEOUT": float(os.getenv("REQUEST_TIMEOUT", "10") or 10),
        "HOST": os.getenv("HOST", "127.0.0.1"),
        "PORT": int(os.getenv("PORT", "8000")),
        "TITLE": os.getenv("DASHBOARD_TITLE", "Trading1501 Filter Analysis"),
        "DISPLAY_TIMEZONE": os.getenv("DISPLAY_TIMEZONE", "UTC").strip() or "UTC",
    }

    log.debug("Parsed PAGE_VARIANT: %s", conf["PAGE_VARIANT"])
    log.debug("Parsed TIMEFRAMES: %s", conf["TIMEFRAMES"])

    return conf


def initialize_components(
    config: Dict,
    overrides: Optional[Dict[str, object]] = None,
) -> Dict[str, object]:
    """
    Construct and wire together all runtime components (supports DI via overrides).

    Keys you can override:
    {"logger", "client", "prober", "catalog", "trends", "resolver"}
    """
    overrides = overrides or {}
    validate_config(config)
    config = ConfigManager(config)

    # 1) Logger
    logger = overrides.get("logger") or setup_logger("Dashboard")

    # 2) HTTP client shared by every collaborator
    client = overrides.get("client") or DashboardApiClient(
        timeout=config.get_request_timeout(),
        logger=logger.getChild("http"),
    )

    # 3) Loaders
    catalog = overrides.get("catalog") or SymbolCatalogLoader(
        client, config.get_symbols_url(), logger=logger.getChild("catalog")
    )
    trends = overrides.get("trends") or TrendSignalLoader(
        client, config.get_trends_url(), logger=logger.getChild("trends")
    )

    # 4) Chart resolver
    prober = overrides.get("prober") or ImageProber(client, logger=logger.getChild("prober"))
    resolver = overrides.get("resolver") or ChartImageResolver(
        prober, config.get_chart_host(), logger=logger.getChild("chart")
    )

    # 5) Page
    dashboard = Dashboard(
        catalog,
        trends,
        resolver,
        timeframes=config.get_timeframes(),
        default_symbol=config.get_default_symbol(),
        fullscreen_enabled=config.supports_fullscreen(),
        title=config.get_title(),
        display_timezone=config.get_display_timezone(),
        logger=logger,
    )

    logger.info("✅ Dashboard initialized (%s variant, timeframes %s).",
                config.get_variant(), config.get_timeframes())

    return {
        "logger": logger,
        "client": client,
        "catalog": catalog,
        "trends": trends,
        "prober": prober,
        "resolver": resolver,
        "dashboard": dashboard,
    }
