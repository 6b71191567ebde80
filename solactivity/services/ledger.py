# services/ledger.py
"""
Transaction ledger builder.

Turns Helius enhanced transactions into TransactionRecords as seen from the
queried address:

- wallet query: one record per transaction, ``owner_address`` is the wallet,
  ``token_address`` is whatever non-native token it bought or sold.
- token query: one record per (transaction, trading wallet) on that mint,
  ``token_address`` is the mint, ``counterparty_address`` is the wallet.

Swap legs come from ``events.swap`` when Helius decoded one, otherwise from
``tokenTransfers`` / ``nativeTransfers``. Records that cannot be parsed are
logged and skipped; they never fail the request.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from core.errors import MalformedRecord
from core.logger import get_logger
from models.activity import AddressKind, TradeAction, TransactionRecord
from services.address_classifier import base58_decoded_length

logger = get_logger("ledger")

WRAPPED_SOL_MINT = "So11111111111111111111111111111111111111112"
LAMPORTS_PER_SOL = 1_000_000_000
SIGNATURE_BYTES = 64
MAX_TOKEN_DECIMALS = 255


@dataclass
class _Leg:
    owner: str
    mint: str
    action: TradeAction
    amount: float
    sol_amount: float


def short_label(mint: str) -> str:
    return f"{mint[:4]}...{mint[-4:]}"


def _to_float(value: Any, what: str, signature: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedRecord(f"Unparsable {what}: {value!r}", signature) from exc
    if not math.isfinite(number) or number < 0:
        raise MalformedRecord(f"Invalid {what}: {value!r}", signature)
    return number


def _raw_token_amount(leg: dict[str, Any], signature: str) -> float:
    raw = leg.get("rawTokenAmount")
    if isinstance(raw, dict):
        amount = _to_float(raw.get("tokenAmount", 0), "token amount", signature)
        decimals = _to_float(raw.get("decimals") or 0, "token decimals", signature)
        if decimals > MAX_TOKEN_DECIMALS:
            raise MalformedRecord(f"Invalid token decimals: {decimals:g}", signature)
        return amount / (10 ** int(decimals))
    if "tokenAmount" in leg:
        return _to_float(leg["tokenAmount"], "token amount", signature)
    raise MalformedRecord("Swap leg has no token amount", signature)


def _native_amount(native: Any, signature: str) -> float:
    if not isinstance(native, dict) or native.get("amount") in (None, ""):
        return 0.0
    return _to_float(native["amount"], "native amount", signature) / LAMPORTS_PER_SOL


def _swap_legs(swap: dict[str, Any], signature: str) -> list[_Leg]:
    legs: list[_Leg] = []
    sol_in = _native_amount(swap.get("nativeInput"), signature)
    sol_out = _native_amount(swap.get("nativeOutput"), signature)

    # tokenOutputs: the user received the token (buy); tokenInputs: sent it (sell)
    for side, key, sol_amount in (("buy", "tokenOutputs", sol_in), ("sell", "tokenInputs", sol_out)):
        for leg in swap.get(key) or []:
            mint = leg.get("mint")
            owner = leg.get("userAccount")
            if not mint or not owner or mint == WRAPPED_SOL_MINT:
                continue
            amount = _raw_token_amount(leg, signature)
            if amount <= 0:
                continue
            legs.append(_Leg(owner, mint, side, amount, sol_amount))
    return legs


def _transfer_legs(tx: dict[str, Any], signature: str) -> list[_Leg]:
    trader = tx.get("feePayer")
    if not trader:
        return []

    sol_sent = 0.0
    sol_received = 0.0
    for transfer in tx.get("nativeTransfers") or []:
        lamports = _to_float(transfer.get("amount", 0), "native transfer", signature)
        if transfer.get("fromUserAccount") == trader:
            sol_sent += lamports / LAMPORTS_PER_SOL
        if transfer.get("toUserAccount") == trader:
            sol_received += lamports / LAMPORTS_PER_SOL

    incoming: list[_Leg] = []
    outgoing: list[_Leg] = []
    for transfer in tx.get("tokenTransfers") or []:
        mint = transfer.get("mint")
        if not mint:
            continue
        amount = _to_float(transfer.get("tokenAmount", 0), "token transfer", signature)
        if amount <= 0:
            continue
        if transfer.get("toUserAccount") == trader:
            incoming.append(_Leg(trader, mint, "buy", amount, sol_sent))
        elif transfer.get("fromUserAccount") == trader:
            outgoing.append(_Leg(trader, mint, "sell", amount, sol_received))

    # A one-sided transfer (airdrop, plain send) is not a trade
    legs: list[_Leg] = []
    if sol_sent > 0 or outgoing:
        legs.extend(leg for leg in incoming if leg.mint != WRAPPED_SOL_MINT)
    if sol_received > 0 or incoming:
        legs.extend(leg for leg in outgoing if leg.mint != WRAPPED_SOL_MINT)
    return legs


def _validate_signature(tx: dict[str, Any]) -> str:
    signature = tx.get("signature")
    if not isinstance(signature, str) or base58_decoded_length(signature) != SIGNATURE_BYTES:
        raise MalformedRecord(f"Invalid transaction signature {signature!r}", None)
    return signature


def _timestamp(tx: dict[str, Any], signature: str) -> datetime:
    raw = tx.get("timestamp")
    if raw is None or isinstance(raw, bool):
        raise MalformedRecord("Missing block timestamp", signature)
    seconds = _to_float(raw, "timestamp", signature)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as exc:
        raise MalformedRecord(f"Block timestamp out of range: {raw!r}", signature) from exc


def _select_legs(address: str, kind: AddressKind, legs: list[_Leg]) -> list[_Leg]:
    if kind == "token":
        seen: set[str] = set()
        selected = []
        for leg in legs:
            if leg.mint == address and leg.owner not in seen:
                seen.add(leg.owner)
                selected.append(leg)
        return selected

    own = [leg for leg in legs if leg.owner == address]
    for action in ("buy", "sell"):
        for leg in own:
            if leg.action == action:
                return [leg]
    return []


def parse_transaction(
    tx: dict[str, Any],
    address: str,
    kind: AddressKind,
    sol_price_usd: float | None,
    token_symbols: dict[str, str] | None = None,
) -> list[TransactionRecord]:
    """Records for one enhanced transaction. Raises MalformedRecord."""
    signature = _validate_signature(tx)
    timestamp = _timestamp(tx, signature)

    swap = (tx.get("events") or {}).get("swap")
    legs = _swap_legs(swap, signature) if swap else []
    if not legs:
        legs = _transfer_legs(tx, signature)

    symbols = token_symbols or {}
    records = []
    for leg in _select_legs(address, kind, legs):
        volume_usd = leg.sol_amount * sol_price_usd if sol_price_usd else 0.0
        records.append(
            TransactionRecord(
                timestamp=timestamp,
                action=leg.action,
                token_symbol=symbols.get(leg.mint) or short_label(leg.mint),
                token_address=leg.mint,
                owner_address=leg.owner,
                counterparty_address=leg.owner if kind == "token" else None,
                amount=leg.amount,
                price_usd=volume_usd / leg.amount if leg.amount else 0.0,
                volume_usd=volume_usd,
                signature=signature,
            )
        )
    return records


def _with_realized_pnl(records: list[TransactionRecord]) -> list[TransactionRecord]:
    """Average-cost realized P&L per (owner, token), walked in time order."""
    positions: dict[tuple[str, str], tuple[float, float]] = {}
    out = []
    for record in records:
        key = (record.owner_address, record.token_address)
        quantity, cost = positions.get(key, (0.0, 0.0))
        pnl = 0.0
        if record.volume_usd > 0:
            if record.action == "buy":
                quantity += record.amount
                cost += record.volume_usd
            elif quantity > 0:
                average_cost = cost / quantity
                matched = min(record.amount, quantity)
                pnl = record.price_usd * matched - average_cost * matched
                quantity -= matched
                cost -= average_cost * matched
        positions[key] = (quantity, cost)
        out.append(record.model_copy(update={"profit_loss": round(pnl, 6)}))
    return out


def apply_token_symbols(
    records: list[TransactionRecord],
    symbols: dict[str, str],
) -> list[TransactionRecord]:
    return [
        record.model_copy(update={"token_symbol": symbols[record.token_address]})
        if record.token_address in symbols
        else record
        for record in records
    ]


def build_ledger(
    address: str,
    kind: AddressKind,
    transactions: Iterable[dict[str, Any]],
    sol_price_usd: float | None,
    token_symbols: dict[str, str] | None = None,
) -> list[TransactionRecord]:
    records: list[TransactionRecord] = []
    seen: set[tuple[str, str]] = set()

    for tx in transactions:
        try:
            parsed = parse_transaction(tx, address, kind, sol_price_usd, token_symbols)
        except MalformedRecord as exc:
            logger.warning(
                "Skipping malformed transaction",
                address=address,
                signature=exc.signature or tx.get("signature"),
                reason=exc.message,
            )
            continue

        for record in parsed:
            key = (record.signature, record.owner_address)
            if key in seen:
                continue
            seen.add(key)
            records.append(record)

    records.sort(key=lambda record: (record.timestamp, record.signature))
    return _with_realized_pnl(records)
