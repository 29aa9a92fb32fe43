import os
from dotenv import load_dotenv
load_dotenv()
# ---- Active chain ----
DEFAULT_CHAIN_ID = int(os.environ.get("DEXSTATS_CHAIN_ID", "1"))
DEFAULT_RPC_URL = os.environ.get("DEXSTATS_RPC_URL")

# ---- RPC pacing ----
RPC_REQUESTS_PER_SEC = float(os.environ.get("DEXSTATS_RPC_REQUESTS_PER_SEC", "25"))
RPC_TIMEOUT_SEC = 15
RPC_MAX_RETRIES = 3

# ---- Pool discovery ----
POOL_FEES = (500, 3000, 10000)   # 0.05%, 0.3%, 1%

# ---- Snapshots / volume estimate ----
OBSERVE_WINDOW_SEC = 3600
VOLUME_EXTRAPOLATION_FACTOR = 24
TICK_VOLUME_DIVISOR = 10 ** 6
FALLBACK_VOLUME_PCT = 5          # % of liquidity assumed traded daily
COMMON_UNIT_DECIMALS = 18

# ---- Result cache ----
CACHE_TTL_SEC = float(os.environ.get("DEXSTATS_CACHE_TTL_SEC", "30"))
CACHE_MAX_CHAINS = 16

# ---- User activity ----
USER_SCAN_BLOCKS = 7200          # ~24h of mainnet blocks

# ----- Chain registry ------

UNISWAP_V3_FACTORY = "0x1F98431c8aD98523631AE4a59f267346ea31F984"

# chain_id -> factory + known tokens (address, symbol, decimals), in discovery order
CHAIN_REGISTRY = {
    1: {
        "name": "ethereum",
        "factory": UNISWAP_V3_FACTORY,
        "tokens": [
            ("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "WETH", 18),
            ("0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", "WBTC", 8),
            ("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "USDC", 6),
            ("0xdAC17F958D2ee523a2206206994597C13D831ec7", "USDT", 6),
        ],
    },
    42161: {
        "name": "arbitrum",
        "factory": UNISWAP_V3_FACTORY,
        "tokens": [
            ("0x82aF49447D8a07e3bd95BD0d56f35241523fBab1", "WETH", 18),
            ("0x2f2a2543B76A4166549F7aaB2e75Bef0aefC5B0f", "WBTC", 8),
            ("0xaf88d065e77c8cC2239327C5EDb3A432268e5831", "USDC", 6),
            ("0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9", "USDT", 6),
        ],
    },
}


def _parse_tokens(raw: str):
    # "0xabc:WETH:18,0xdef:USDC:6"
    out = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        address, symbol, decimals = item.split(":")
        out.append((address.strip(), symbol.strip(), int(decimals)))
    return out


# Optional private/test network
CUSTOM_CHAIN_ID = os.environ.get("DEXSTATS_CUSTOM_CHAIN_ID")
if CUSTOM_CHAIN_ID and os.environ.get("DEXSTATS_CUSTOM_FACTORY"):
    CHAIN_REGISTRY[int(CUSTOM_CHAIN_ID)] = {
        "name": os.environ.get("DEXSTATS_CUSTOM_CHAIN_NAME", "custom"),
        "factory": os.environ["DEXSTATS_CUSTOM_FACTORY"],
        "tokens": _parse_tokens(os.environ.get("DEXSTATS_CUSTOM_TOKENS", "")),
    }


def rpc_url_for(chain_id: int):
    url = os.environ.get(f"DEXSTATS_RPC_URL_{int(chain_id)}")
    if url:
        return url
    if int(chain_id) == DEFAULT_CHAIN_ID:
        return DEFAULT_RPC_URL
    return None
