"""
Project-wide immutable parameters for the PumpLogic fee router.

These values define who may use the gated features and how fees are
converted into transfers. Changing them changes access rules and MUST be
publicly announced.
"""

# Gating token mint (MAINNET)
TOKEN_MINT = "63k7noZHAPfxnwzq4wGHJG4kksT7enoT2ua3shQ2pump"
TOKEN_SYMBOL = "PLOGIC"

# Minimum USD value of TOKEN_MINT holdings required to pass the gate
MIN_USD_VALUE = 50.0

# Wallets that bypass the holdings check
WHITELISTED_ADDRESSES = frozenset(
    {
        "9mRTLVQXjF2Fj9TkzUzmA7Jk22kAAq5Ssx4KykQQHxn8",
    }
)

# Native currency: 1 SOL = 10^9 lamports
LAMPORTS_PER_SOL = 10**9

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_PRICE_API_URL = "https://api.jup.ag/price/v2"

# Lamports per signature, used when the node cannot quote a fee
DEFAULT_SIGNATURE_FEE = 5000

# Fixed channel order of every distribution transaction
CHANNELS = ("market_making", "buyback", "liquidity", "revenue")
