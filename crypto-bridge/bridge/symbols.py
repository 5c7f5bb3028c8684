# -*- coding: utf-8 -*-
"""
symbols.py
币种代码 -> 币种名称，纯查表，无状态。
查不到就原样返回代码（上游检索时 "XYZ OR XYZ" 也无害）。
"""

COIN_NAMES = {
    "BTC": "Bitcoin",
    "ETH": "Ethereum",
    "ADA": "Cardano",
    "DOT": "Polkadot",
    "SOL": "Solana",
    "MATIC": "Polygon",
    "LINK": "Chainlink",
    "UNI": "Uniswap",
    "AAVE": "Aave",
    "DOGE": "Dogecoin",
    "XRP": "Ripple",
    "LTC": "Litecoin",
    "BCH": "Bitcoin Cash",
    "AVAX": "Avalanche",
}


def coin_name(symbol: str) -> str:
    return COIN_NAMES.get(symbol.upper(), symbol)
