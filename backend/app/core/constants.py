# Fixed-point precision for USD amounts and prices stored in the database.
# e.g. $0.00001 -> 0.00001 * 10^9 = 10_000
AMOUNT_PRECISION = 10**9

# Largest value the BigInteger amount, balance and total columns can hold
MAX_AMOUNT_UNITS = 2**63 - 1

# Singleton presale row id
PRESALE_ROW_ID = 1

# Recognized UserAccount.metadata keys; anything else is dropped
METADATA_KEYS = frozenset({
    "connected_at",
    "chain",
    "payment_status",
    "last_tx_hash",
    "last_amount",
    "payment_token",
})

# Known chain names and the wallet family whose addresses they accept
CHAIN_FAMILIES: dict[str, str] = {
    "ethereum": "evm",
    "eth": "evm",
    "bsc": "evm",
    "polygon": "evm",
    "base": "evm",
    "arbitrum": "evm",
    "solana": "solana",
    "sol": "solana",
}
