# utils/timeframe.py
from typing import Dict, List, Tuple

# page variant -> (timeframes shown, fullscreen toggle available)
PAGE_VARIANTS: Dict[str, Tuple[Tuple[str, ...], bool]] = {
    "standard": (("H1", "D1", "W1"), False),
    "extended": (("H4", "D1", "W1"), True),
}


def normalize_tf(tf: str) -> str:
    """
    Map a bunch of aliases to the canonical chart suffix ('H1', 'D1', ...).
    Unknown values are upper-cased and passed through.
    """
    t = tf.strip().lower()
    aliases = {
        "M15": ["m15", "15m", "15min", "minute15"],
        "M30": ["m30", "30m", "30min", "minute30"],
        "H1": ["h1", "1h", "60", "hour1"],
        "H4": ["h4", "4h", "240", "hour4"],
        "D1": ["d1", "1d", "d", "day1"],
        "W1": ["w1", "1w", "w", "week1"],
    }
    for canon, alts in aliases.items():
        if t in alts:
            return canon
    return t.upper()


def variant_timeframes(variant: str) -> List[str]:
    """Timeframes offered by a page variant (unknown variants fall back to 'standard')."""
    timeframes, _ = PAGE_VARIANTS.get(variant, PAGE_VARIANTS["standard"])
    return list(timeframes)


def variant_supports_fullscreen(variant: str) -> bool:
    _, fullscreen = PAGE_VARIANTS.get(variant, PAGE_VARIANTS["standard"])
    return fullscreen
