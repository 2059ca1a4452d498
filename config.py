import os
from dotenv import load_dotenv

load_dotenv()

# Telegram bot token
BOT_TOKEN = os.getenv("BOT_TOKEN")

# Network
SOLANA_RPC_URL = os.getenv("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com")
SOL_PRICE_URL = os.getenv(
    "SOL_PRICE_URL",
    "https://api.coingecko.com/api/v3/simple/price?ids=solana&vs_currencies=usd"
)
# Seconds before an RPC or price request is abandoned
QUERY_TIMEOUT = float(os.getenv("QUERY_TIMEOUT", 10))

# Raydium programs a swap must touch to be parsed
RAYDIUM_PROGRAM_IDS = {
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",  # AMM v4
    "CPMMoo8L3F4NbTegBCKVNunggL7H1ZpdTHKxQB5qKP1C",  # CPMM
    "CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK",  # CLMM
}
WSOL_MINT = "So11111111111111111111111111111111111111112"
SOL_DECIMALS = 9

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Forget the pending action once its query has run, instead of keeping it until the next menu pick
CLEAR_PENDING_AFTER_DISPATCH = os.getenv("CLEAR_PENDING_AFTER_DISPATCH", "false").lower() in ("1", "true", "yes")
