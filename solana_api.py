import asyncio
import json
import logging

import requests
from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey
from solders.signature import Signature

from config import QUERY_TIMEOUT, RAYDIUM_PROGRAM_IDS, SOL_DECIMALS, SOL_PRICE_URL, SOLANA_RPC_URL, WSOL_MINT
from errors import ExternalQueryFailure
from utils import from_decimals

# Shared RPC client, created on first use
client = None


def get_client():
    global client
    if client is None:
        client = AsyncClient(SOLANA_RPC_URL, timeout=QUERY_TIMEOUT)
    return client


def format_amount(amount):
    text = f"{amount:,.9f}".rstrip("0").rstrip(".")
    return text or "0"


def get_sol_price_usd():
    try:
        resp = requests.get(SOL_PRICE_URL, headers={"accept": "application/json"}, timeout=QUERY_TIMEOUT)
        resp.raise_for_status()
        return float(resp.json()["solana"]["usd"])
    except Exception as e:
        logging.warning(f"Error fetching SOL price from {SOL_PRICE_URL}: {e}")
        return None


def format_balance(sol, price_usd):
    if price_usd is None:
        return f"{format_amount(sol)} SOL"
    return f"{format_amount(sol)} SOL (${sol * price_usd:,.2f})"


async def get_sol_balance_and_usd(address):
    """Return the wallet's SOL balance with its USD value as display text."""
    try:
        pubkey = Pubkey.from_string(address)
    except ValueError as e:
        raise ExternalQueryFailure("Invalid wallet address", {"address": address}) from e
    resp = await get_client().get_balance(pubkey)
    sol = from_decimals(resp.value, SOL_DECIMALS)
    price_usd = await asyncio.to_thread(get_sol_price_usd)
    return format_balance(sol, price_usd)


def _account_keys(tx):
    keys = tx["transaction"]["message"]["accountKeys"]
    return [key["pubkey"] if isinstance(key, dict) else key for key in keys]


def _token_amounts(balances, owner):
    """Sum raw token amounts per mint for the accounts `owner` holds."""
    amounts = {}
    for entry in balances or []:
        if entry.get("owner") != owner:
            continue
        token = entry["uiTokenAmount"]
        raw, _ = amounts.get(entry["mint"], (0, None))
        amounts[entry["mint"]] = (raw + int(token["amount"]), token["decimals"])
    return amounts


def _balance_changes(meta, signer):
    pre = _token_amounts(meta.get("preTokenBalances"), signer)
    post = _token_amounts(meta.get("postTokenBalances"), signer)
    changes = []
    for mint in list(pre) + [mint for mint in post if mint not in pre]:
        pre_raw, pre_decimals = pre.get(mint, (0, None))
        post_raw, post_decimals = post.get(mint, (0, None))
        decimals = pre_decimals if pre_decimals is not None else post_decimals
        delta = post_raw - pre_raw
        if delta:
            changes.append({"mint": mint, "amount": from_decimals(delta, decimals), "decimals": decimals})

    # Native SOL only counts when the swap did not go through a wrapped SOL account
    if not any(change["mint"] == WSOL_MINT for change in changes):
        pre_balances = meta.get("preBalances") or [0]
        post_balances = meta.get("postBalances") or [0]
        lamports = post_balances[0] - pre_balances[0] + meta.get("fee", 0)
        if lamports:
            changes.append({"mint": WSOL_MINT, "amount": from_decimals(lamports, SOL_DECIMALS), "decimals": SOL_DECIMALS})
    return changes


def parse_raydium_swap(signature, tx):
    """
    Summarize a confirmed Raydium swap from its jsonParsed transaction.
    Returns what the signer paid (tokenIn) and received (tokenOut).
    """
    if tx is None:
        raise ExternalQueryFailure("Transaction not found", {"signature": signature})
    meta = tx.get("meta") or {}
    if meta.get("err") is not None:
        raise ExternalQueryFailure("Transaction failed", {"signature": signature, "err": meta["err"]})

    keys = _account_keys(tx)
    if not RAYDIUM_PROGRAM_IDS.intersection(keys):
        raise ExternalQueryFailure("Not a Raydium swap transaction", {"signature": signature})
    signer = keys[0]

    changes = _balance_changes(meta, signer)
    token_in = next((change for change in changes if change["amount"] < 0), None)
    token_out = next((change for change in changes if change["amount"] > 0), None)
    if token_in is None or token_out is None:
        raise ExternalQueryFailure("No swap balance changes found for signer", {"signature": signature, "signer": signer})

    return {
        "status": "ok",
        "signature": signature,
        "slot": tx.get("slot"),
        "blockTime": tx.get("blockTime"),
        "signer": signer,
        "fee": from_decimals(meta.get("fee", 0), SOL_DECIMALS),
        "tokenIn": {"mint": token_in["mint"], "amount": -token_in["amount"]},
        "tokenOut": {"mint": token_out["mint"], "amount": token_out["amount"]},
        "changes": changes,
    }


async def get_raydium_swap_parse_data(signature):
    try:
        sig = Signature.from_string(signature)
    except ValueError as e:
        raise ExternalQueryFailure("Invalid transaction signature", {"signature": signature}) from e
    resp = await get_client().get_transaction(sig, encoding="jsonParsed", max_supported_transaction_version=0)
    tx = json.loads(resp.to_json()).get("result")
    return parse_raydium_swap(signature, tx)
