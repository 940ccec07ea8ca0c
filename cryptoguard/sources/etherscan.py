import asyncio
import os
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ParseError, RateLimitError, UpstreamTransportError
from ..logging_utils import get_logger
from ..models import (
    ContractProfile, GasSnapshot, ProfitLoss, TokenBalance, TokenInfo, Transaction, WalletProfile,
)
from ..utils.address import short

logger = get_logger(__name__)

ETHERSCAN_API_URL = os.getenv("ETHERSCAN_API_URL", "https://api.etherscan.io/api")
ETHERSCAN_API_KEY = os.getenv("ETHERSCAN_API_KEY", "")
ETHERSCAN_TIMEOUT = float(os.getenv("ETHERSCAN_TIMEOUT", "20"))

TX_LIMIT = 50
WEI_PER_ETH = Decimal(10) ** 18
NOT_VERIFIED = "Contract source code not verified"
RATE_LIMIT_SENTINEL = "max rate limit reached"

# tokens ERC20 seguidos: símbolo -> (contrato, decimales)
TRACKED_TOKENS = {
    "USDT": ("0xdac17f958d2ee523a2206206994597c13d831ec7", "6"),
    "USDC": ("0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48", "6"),
    "DAI": ("0x6b175474e89094c44da98b954eedeac495271d0f", "18"),
}


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=ETHERSCAN_TIMEOUT)


def _decode(r: httpx.Response, context: str) -> Dict[str, Any]:
    if r.is_error:
        raise UpstreamTransportError(
            f"Etherscan {context} request failed: {r.status_code}", source="etherscan", status_code=r.status_code
        )
    try:
        data = r.json()
    except ValueError as e:
        raise ParseError(f"Etherscan {context} returned malformed JSON") from e
    if not isinstance(data, dict):
        raise ParseError(f"Etherscan {context} returned {type(data).__name__}, expected object")

    if data.get("message") == "NOTOK" and RATE_LIMIT_SENTINEL in str(data.get("result", "")).lower():
        raise RateLimitError(
            "Etherscan API rate limit reached. Please try again in a moment.", source="etherscan"
        )
    return data


async def _call(client: httpx.AsyncClient, context: str, **params) -> Dict[str, Any]:
    params["apikey"] = ETHERSCAN_API_KEY
    try:
        r = await client.get(ETHERSCAN_API_URL, params=params)
    except httpx.HTTPError as e:
        raise UpstreamTransportError(f"Etherscan {context} request failed: {e}", source="etherscan") from e
    try:
        return _decode(r, context)
    except ParseError as e:
        # respuesta ilegible = sin datos; los llamadores usan sus valores por defecto
        logger.warning("%s", e)
        return {}


def _ok(data: Dict[str, Any]) -> bool:
    return data.get("status") == "1"


def _int(value: Any, base: int = 10) -> int:
    try:
        return int(str(value), base)
    except (TypeError, ValueError):
        return 0


# ------------------- gas -------------------
async def get_gas_price() -> GasSnapshot:
    async with _client() as client:
        data = await _call(client, "gas tracker", module="gastracker", action="gasoracle")
    result = data.get("result")
    if not _ok(data) or not isinstance(result, dict):
        raise UpstreamTransportError("Invalid gas price data received", source="etherscan")
    return GasSnapshot(
        low=_int(result.get("SafeGasPrice") or result.get("SafeLow") or "0"),
        medium=_int(result.get("ProposeGasPrice") or "0"),
        high=_int(result.get("FastGasPrice") or "0"),
    )


# ------------------- contratos -------------------
async def _is_contract(client: httpx.AsyncClient, address: str) -> bool:
    data = await _call(client, "bytecode", module="proxy", action="eth_getCode", address=address, tag="latest")
    code = data.get("result")
    if not isinstance(code, str) or not code.startswith("0x"):
        # NOTOK trae el motivo en "result" (p. ej. clave inválida)
        reason = data.get("result") or data.get("message") or "no result"
        raise UpstreamTransportError(f"Etherscan bytecode lookup failed for {address}: {reason}", source="etherscan")
    return code not in ("0x", "0x0")


async def _token_info(client: httpx.AsyncClient, address: str) -> Optional[TokenInfo]:
    try:
        data = await _call(client, "token info", module="token", action="tokeninfo", contractaddress=address)
    except UpstreamTransportError as e:
        logger.info("Token info unavailable for %s: %s", short(address), e)
        return None
    rows = data.get("result")
    if not _ok(data) or not isinstance(rows, list) or not rows:
        return None
    row = rows[0]
    holders = row.get("holdersCount")
    return TokenInfo(
        name=row.get("tokenName") or None,
        symbol=row.get("symbol") or None,
        total_supply=row.get("totalSupply") or None,
        holders=_int(holders) if holders not in (None, "") else None,
    )


async def get_contract_info(address: str) -> Optional[ContractProfile]:
    """Verification, balance and nonce of a contract.

    Returns None when the address carries no bytecode (an externally-owned
    account), so the caller can take the wallet path instead.
    """
    async with _client() as client:
        if not await _is_contract(client, address):
            logger.info("%s has no bytecode, treating as wallet", short(address))
            return None

        verification, balance, nonce = await asyncio.gather(
            _call(client, "verification", module="contract", action="getabi", address=address),
            _call(client, "balance", module="account", action="balance", address=address, tag="latest"),
            _call(client, "transaction count", module="proxy", action="eth_getTransactionCount",
                  address=address, tag="latest"),
        )
        is_verified = _ok(verification) and verification.get("result") != NOT_VERIFIED

        profile = ContractProfile(
            is_verified=is_verified,
            balance=str(balance.get("result")) if _ok(balance) else "0",
            # el proxy no trae "status", sólo "result" en hex
            tx_count=_int(nonce.get("result"), 16) if nonce.get("result") else 0,
        )
        if not is_verified:
            return profile

        source = await _call(client, "source code", module="contract", action="getsourcecode", address=address)
        rows = source.get("result")
        if _ok(source) and isinstance(rows, list) and rows:
            profile.contract_name = rows[0].get("ContractName") or None
            profile.compiler = rows[0].get("CompilerVersion") or None
        profile.token_info = await _token_info(client, address)
        return profile


# ------------------- wallets -------------------
async def get_token_balance(address: str, token_address: str, client: httpx.AsyncClient | None = None) -> str:
    try:
        if client is None:
            async with _client() as own:
                data = await _call(own, "token balance", module="account", action="tokenbalance",
                                   address=address, contractaddress=token_address, tag="latest")
        else:
            data = await _call(client, "token balance", module="account", action="tokenbalance",
                               address=address, contractaddress=token_address, tag="latest")
    except UpstreamTransportError as e:
        logger.warning("Error fetching token balance %s for %s: %s", short(token_address), short(address), e)
        return "0"
    return str(data.get("result") or "0") if _ok(data) else "0"


def _rows(data: Dict[str, Any]) -> List[dict]:
    rows = data.get("result") if _ok(data) else []
    return rows if isinstance(rows, list) else []


def _native_tx(tx: dict) -> Transaction:
    return Transaction(
        hash=tx.get("hash", ""),
        from_address=tx.get("from", ""),
        to=tx.get("to", ""),
        value=str(tx.get("value", "0")),
        timestamp=_int(tx.get("timeStamp")),
        is_error=str(tx.get("isError", "0")),
        method_name=tx.get("functionName") or None,
    )


def _token_tx(tx: dict) -> Transaction:
    return Transaction(
        hash=tx.get("hash", ""),
        from_address=tx.get("from", ""),
        to=tx.get("to", ""),
        value=str(tx.get("value", "0")),
        timestamp=_int(tx.get("timeStamp")),
        is_error="0",
        token_name=tx.get("tokenName"),
        token_symbol=tx.get("tokenSymbol"),
        token_decimal=tx.get("tokenDecimal"),
    )


def _wei_to_eth(v: str) -> Decimal:
    try:
        return Decimal(v) / WEI_PER_ETH
    except (InvalidOperation, ValueError):
        return Decimal("0")


def profit_loss(address: str, transactions: List[Transaction]) -> ProfitLoss:
    """Inflow/outflow of native value across the fetched transactions (ETH)."""
    me = address.lower()
    inflow = outflow = Decimal("0")
    for tx in transactions:
        if tx.is_error == "1":
            continue
        amt = _wei_to_eth(tx.value)
        if tx.to.lower() == me:
            inflow += amt
        if tx.from_address.lower() == me:
            outflow += amt
    return ProfitLoss(
        total_profit=format(inflow.normalize(), "f"),
        total_loss=format(outflow.normalize(), "f"),
        net_position=format((inflow - outflow).normalize(), "f"),
    )


async def get_wallet_transactions(address: str) -> WalletProfile:
    async with _client() as client:
        history = dict(startblock=0, endblock=99999999, sort="desc")
        normal, tokens, balance, *token_balances = await asyncio.gather(
            _call(client, "transactions", module="account", action="txlist", address=address, **history),
            _call(client, "token transactions", module="account", action="tokentx", address=address, **history),
            _call(client, "balance", module="account", action="balance", address=address, tag="latest"),
            *(get_token_balance(address, contract, client) for contract, _ in TRACKED_TOKENS.values()),
        )

    transactions = [_native_tx(tx) for tx in _rows(normal)[:TX_LIMIT]]
    token_transfers = [_token_tx(tx) for tx in _rows(tokens)[:TX_LIMIT]]

    stamps = [tx.timestamp for tx in transactions] + [tx.timestamp for tx in token_transfers]
    last_active = max(stamps) if stamps else int(time.time())

    held = []
    for (symbol, (contract, decimals)), bal in zip(TRACKED_TOKENS.items(), token_balances):
        if bal and bal != "0":
            held.append(TokenBalance(
                token_name=symbol, token_symbol=symbol, token_decimal=decimals,
                balance=bal, contract_address=contract,
            ))

    logger.info("Wallet %s: %d txs, %d token transfers, %d tracked balances",
                short(address), len(transactions), len(token_transfers), len(held))
    return WalletProfile(
        address=address,
        balance=str(balance.get("result")) if _ok(balance) else "0",
        token_balances=held,
        transactions=transactions,
        token_transfers=token_transfers,
        last_active=last_active,
        total_tx_count=len(transactions) + len(token_transfers),
        profit_loss=profit_loss(address, transactions),
    )
