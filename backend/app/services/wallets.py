"""
Wallet identity resolution.

The front end connects either an EVM wallet or a Solana wallet; both arrive
here as an address plus a chain name. Addresses are trusted as given (no
signature or ownership checks) but must parse as one of the supported
families.
"""

import re
from dataclasses import dataclass

from app.core.constants import CHAIN_FAMILIES
from app.core.exceptions import WalletNotResolvable


WALLET_ADDRESS_REGEX_MAP: dict[str, re.Pattern[str]] = {
    "solana": re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$"),
    "evm": re.compile(r"^0x[a-fA-F0-9]{40}$"),
}


@dataclass(frozen=True)
class WalletIdentity:
    id: str
    chain_family: str
    chain: str


def classify_wallet_address(wallet_address: str) -> str | None:
    """Classify wallet address format into normalized blockchain bucket."""
    address = wallet_address.strip()
    if not address:
        return None

    for family, pattern in WALLET_ADDRESS_REGEX_MAP.items():
        if pattern.fullmatch(address):
            return family

    return None


def normalize_wallet_address(wallet_address: str, family: str) -> str:
    # Base58 is case-sensitive, hex is not
    address = wallet_address.strip()
    return address.lower() if family == "evm" else address


def resolve_wallet(wallet_address: str | None, chain: str | None) -> WalletIdentity:
    """
    Turn caller-supplied wallet details into a normalized identity.

    Raises WalletNotResolvable when the address or chain is missing, the
    address matches no supported family, or a known chain name belongs to
    the other family.
    """
    if not wallet_address or not wallet_address.strip():
        raise WalletNotResolvable("wallet_address is required")
    if not chain or not chain.strip():
        raise WalletNotResolvable("chain is required")

    family = classify_wallet_address(wallet_address)
    if family is None:
        raise WalletNotResolvable("Unsupported wallet_address format. Expected Solana or EVM address.")

    chain_name = chain.strip().lower()
    expected_family = CHAIN_FAMILIES.get(chain_name)
    if expected_family is not None and expected_family != family:
        raise WalletNotResolvable(f"{family} address cannot be used on chain '{chain_name}'")

    return WalletIdentity(
        id=normalize_wallet_address(wallet_address, family),
        chain_family=family,
        chain=chain_name,
    )


def lookup_key(wallet_address: str) -> str:
    """Normalize an address for a read-only lookup; unparseable input is returned stripped."""
    family = classify_wallet_address(wallet_address)
    if family is None:
        return wallet_address.strip()
    return normalize_wallet_address(wallet_address, family)
