"""Fixed game rules: coin catalog, prices, hardware costs, action costs.

These are properties of the game itself rather than of a particular run, so
they live here instead of in the YAML-backed ``GameConfig``.
"""

NORMAL_STARTING_CASH = 10_000.0
SANDBOX_STARTING_CASH = 1_000_000_000.0

HISTORY_LIMIT = 100
PRICE_FLOOR = 0.01
STABLECOIN_ID = "usdt"

# Rig hardware.
PC_SLOTS = 6
PC_COSTS = [
    1_000.0,  # Cost to buy (level 1)
    5_000.0,  # Upgrade to level 2
    25_000.0,  # Upgrade to level 3
    100_000.0,  # Upgrade to level 4
]
PC_MAX_LEVEL = len(PC_COSTS)
GPU_COST = 400.0
GPU_LIMIT_PER_PC = 10
HASH_RATE_PER_LEVEL = 5
HASH_RATE_PER_GPU = 10
DOLLARS_PER_HASH_DAY = 0.5

# Market-moving actions: (cost, price multiplier).
PROMOTE_COST = 400.0
PROMOTE_MULTIPLIER = 1.05
BRIBE_COST = 100_000.0
BRIBE_MULTIPLIER = 2.0

PRO_ADVICE_FEE = 150.0
ADVICE_HISTORY_WINDOW = 20

# Days advanced per tick, with display labels.
TIME_SPEEDS = {
    0: "Paused",
    1: "1 Day/sec",
    7: "7 Days/sec",
    30: "30 Days/sec",
}
DEFAULT_TIME_SPEED = 1

INITIAL_COINS = [
    {"id": "btc", "name": "Bitcoin", "symbol": "BTC", "price": 60000},
    {"id": "eth", "name": "Ethereum", "symbol": "ETH", "price": 3000},
    {"id": "usdt", "name": "Tether", "symbol": "USDT", "price": 1, "stable": True},
    {"id": "bnb", "name": "Binance Coin", "symbol": "BNB", "price": 580},
    {"id": "ada", "name": "Cardano", "symbol": "ADA", "price": 0.45},
    {"id": "xrp", "name": "XRP", "symbol": "XRP", "price": 0.52},
    {"id": "doge", "name": "Dogecoin", "symbol": "DOGE", "price": 0.15},
    {"id": "dot", "name": "Polkadot", "symbol": "DOT", "price": 7.5},
    {"id": "ltc", "name": "Litecoin", "symbol": "LTC", "price": 85},
    {"id": "sol", "name": "Solana", "symbol": "SOL", "price": 150},
    {"id": "matic", "name": "Polygon", "symbol": "MATIC", "price": 0.7},
    {"id": "avax", "name": "Avalanche", "symbol": "AVAX", "price": 35},
    {"id": "link", "name": "Chainlink", "symbol": "LINK", "price": 18},
    {"id": "atom", "name": "Cosmos", "symbol": "ATOM", "price": 11},
    {"id": "uni", "name": "Uniswap", "symbol": "UNI", "price": 10},
    {"id": "xlm", "name": "Stellar", "symbol": "XLM", "price": 0.11},
    {"id": "vet", "name": "VeChain", "symbol": "VET", "price": 0.035},
    {"id": "theta", "name": "Theta", "symbol": "THETA", "price": 2.5},
    {"id": "fil", "name": "Filecoin", "symbol": "FIL", "price": 6},
    {"id": "algo", "name": "Algorand", "symbol": "ALGO", "price": 0.18},
]
DEFAULT_COIN_ID = "btc"
