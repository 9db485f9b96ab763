from typing import Dict

from eth_typing import HexStr

from zksync_flow.core.types import Token

MAINNET_TOKENS: Dict[str, Token] = {
    "ETH": Token.create_eth(),
    "USDC": Token(
        l1_address=HexStr("0xA0b86a90Ce9f1B28B1fFcC21c13DaEDf21bEe67c"),
        l2_address=HexStr("0x3355df6D4c9C3035724Fd0e3914dE96A5a83aaf4"),
        name="USD Coin",
        symbol="USDC",
        decimals=6,
    ),
    "USDT": Token(
        l1_address=HexStr("0xdAC17F958D2ee523a2206206994597C13D831ec7"),
        l2_address=HexStr("0x493257fD37EDB34451f62EDf8D2a0C418852bA4C"),
        name="Tether USD",
        symbol="USDT",
        decimals=6,
    ),
    "WBTC": Token(
        l1_address=HexStr("0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599"),
        l2_address=HexStr("0xBBeB516fb02a01611cBBE0453Fe3c580D7281011"),
        name="Wrapped Bitcoin",
        symbol="WBTC",
        decimals=8,
    ),
    "WETH": Token(
        l1_address=HexStr("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"),
        l2_address=HexStr("0x5AEa5775959fBC2557Cc8789bC1bf90A239D9a91"),
        name="Wrapped Ether",
        symbol="WETH",
        decimals=18,
    ),
}

SEPOLIA_TOKENS: Dict[str, Token] = {
    "ETH": Token.create_eth(),
}

TOKENS_BY_NETWORK: Dict[str, Dict[str, Token]] = {
    "mainnet": MAINNET_TOKENS,
    "sepolia": SEPOLIA_TOKENS,
}


def find_token(network: str, symbol: str) -> Token:
    """Looks up a well known token by symbol, case-insensitively."""
    tokens = TOKENS_BY_NETWORK.get(network, {})
    try:
        return tokens[symbol.upper()]
    except KeyError:
        raise LookupError(f"Token {symbol!r} is not known on {network}") from None
