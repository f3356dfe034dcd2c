"""
Runtime configuration for the trading gateway.

Every value comes from the environment. Exchange credentials are never
configured here: callers send them with each request.
"""

import os


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Exchange REST base URLs (override for testnets or proxies).
EXCHANGE_BASE_URLS = {
    "xt": os.getenv("XT_API_BASE_URL", "https://sapi.xt.com"),
    "bybit": os.getenv("BYBIT_API_BASE_URL", "https://api.bybit.com"),
    "binance": os.getenv("BINANCE_API_BASE_URL", "https://api.binance.com"),
    "kucoin": os.getenv("KUCOIN_API_BASE_URL", "https://api.kucoin.com"),
    "bitget": os.getenv("BITGET_API_BASE_URL", "https://api.bitget.com"),
}

# Per-call HTTP timeout (seconds); no retries are layered on top.
EXCHANGE_HTTP_TIMEOUT = _env_float("EXCHANGE_HTTP_TIMEOUT", 10.0)

DEFAULT_EXCHANGE = os.getenv("DEFAULT_EXCHANGE", "xt").lower()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:8080").split(",")
    if origin.strip()
]

# AI chat providers; unset keys leave the provider unavailable (503).
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
CHAINGPT_API_KEY = os.getenv("CHAINGPT_API_KEY")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(_env_float("PORT", 3001))
