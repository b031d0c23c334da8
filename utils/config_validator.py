from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from utils.timeframe import PAGE_VARIANTS


def validate_config(config: dict):
    required_keys = [
        "SYMBOLS_URL",
        "TRENDS_URL",
        "CHART_HOST",
        "PAGE_VARIANT",
        "TIMEFRAMES",
    ]

    missing = [k for k in required_keys if k not in config or not config[k]]
    if missing:
        raise ValueError(f"Missing required configuration keys: {missing}")

    for key in ("SYMBOLS_URL", "TRENDS_URL", "CHART_HOST"):
        if not str(config[key]).startswith(("http://", "https://")):
            raise ValueError(f"{key} must be an http(s) URL, got {config[key]!r}.")

    if config["PAGE_VARIANT"] not in PAGE_VARIANTS:
        raise ValueError(
            f"PAGE_VARIANT must be one of {sorted(PAGE_VARIANTS)}, got {config['PAGE_VARIANT']!r}."
        )

    if not isinstance(config["TIMEFRAMES"], list) or not config["TIMEFRAMES"]:
        raise TypeError("TIMEFRAMES must be a non-empty list.")

    timeout = config.get("REQUEST_TIMEOUT", 10)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError("REQUEST_TIMEOUT must be a positive number of seconds.")

    zone = config.get("DISPLAY_TIMEZONE")
    if zone:
        try:
            ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"DISPLAY_TIMEZONE must be an IANA time zone name, got {zone!r}.")
