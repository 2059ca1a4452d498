from __future__ import annotations

import json
from types import SimpleNamespace

import pytest
from solders.pubkey import Pubkey
from solders.signature import Signature

import solana_api
from config import WSOL_MINT
from errors import ExternalQueryFailure

SIGNER = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
POOL_OWNER = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"
RAYDIUM_AMM = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


def _token_balance(index: int, mint: str, owner: str, amount: str, decimals: int) -> dict[str, object]:
    return {
        "accountIndex": index,
        "mint": mint,
        "owner": owner,
        "uiTokenAmount": {"amount": amount, "decimals": decimals},
    }


def _transaction(*, pre_tokens, post_tokens, pre_sol=1_000_000_000, post_sol=1_000_000_000, fee=5000, err=None, keys=None):
    keys = keys if keys is not None else [SIGNER, POOL_OWNER, RAYDIUM_AMM]
    return {
        "slot": 250_000_000,
        "blockTime": 1_700_000_000,
        "transaction": {
            "message": {"accountKeys": [{"pubkey": key, "signer": i == 0} for i, key in enumerate(keys)]},
            "signatures": ["sig"],
        },
        "meta": {
            "err": err,
            "fee": fee,
            "preBalances": [pre_sol, 0, 1],
            "postBalances": [post_sol, 0, 1],
            "preTokenBalances": pre_tokens,
            "postTokenBalances": post_tokens,
        },
    }


def test_parse_swap_from_token_to_native_sol() -> None:
    tx = _transaction(
        pre_tokens=[
            _token_balance(3, USDC, SIGNER, "5000000", 6),
            _token_balance(4, USDC, POOL_OWNER, "900000000", 6),
        ],
        post_tokens=[
            _token_balance(3, USDC, SIGNER, "0", 6),
            _token_balance(4, USDC, POOL_OWNER, "905000000", 6),
        ],
        post_sol=1_029_995_000,
    )

    result = solana_api.parse_raydium_swap("sig", tx)

    assert result["status"] == "ok"
    assert result["signer"] == SIGNER
    assert result["slot"] == 250_000_000
    assert result["fee"] == pytest.approx(0.000005)
    assert result["tokenIn"] == {"mint": USDC, "amount": pytest.approx(5.0)}
    assert result["tokenOut"] == {"mint": WSOL_MINT, "amount": pytest.approx(0.03)}
    json.dumps(result)


def test_parse_swap_through_wrapped_sol_ignores_native_balance() -> None:
    tx = _transaction(
        pre_tokens=[_token_balance(3, WSOL_MINT, SIGNER, "2000000000", 9)],
        post_tokens=[
            _token_balance(3, WSOL_MINT, SIGNER, "0", 9),
            _token_balance(5, BONK, SIGNER, "123450000", 5),
        ],
        post_sol=997_000_000,
    )

    result = solana_api.parse_raydium_swap("sig", tx)

    assert [change["mint"] for change in result["changes"]] == [WSOL_MINT, BONK]
    assert result["tokenIn"] == {"mint": WSOL_MINT, "amount": pytest.approx(2.0)}
    assert result["tokenOut"] == {"mint": BONK, "amount": pytest.approx(1234.5)}


def test_parse_swap_accepts_plain_string_account_keys() -> None:
    tx = _transaction(
        pre_tokens=[_token_balance(3, USDC, SIGNER, "1000000", 6)],
        post_tokens=[_token_balance(3, USDC, SIGNER, "0", 6)],
        post_sol=1_010_000_000,
    )
    tx["transaction"]["message"]["accountKeys"] = [SIGNER, POOL_OWNER, RAYDIUM_AMM]

    assert solana_api.parse_raydium_swap("sig", tx)["signer"] == SIGNER


def test_missing_transaction_fails() -> None:
    with pytest.raises(ExternalQueryFailure) as excinfo:
        solana_api.parse_raydium_swap("sig", None)

    assert excinfo.value.detail == {"error": "Transaction not found", "signature": "sig"}


def test_failed_transaction_fails() -> None:
    tx = _transaction(pre_tokens=[], post_tokens=[], err={"InstructionError": [2, {"Custom": 30}]})

    with pytest.raises(ExternalQueryFailure, match="Transaction failed") as excinfo:
        solana_api.parse_raydium_swap("sig", tx)

    assert excinfo.value.detail["err"] == {"InstructionError": [2, {"Custom": 30}]}


def test_non_raydium_transaction_fails() -> None:
    tx = _transaction(pre_tokens=[], post_tokens=[], keys=[SIGNER, POOL_OWNER])

    with pytest.raises(ExternalQueryFailure, match="Not a Raydium swap"):
        solana_api.parse_raydium_swap("sig", tx)


def test_transaction_without_signer_changes_fails() -> None:
    tx = _transaction(pre_tokens=[], post_tokens=[], post_sol=1_000_000_000 - 5000)

    with pytest.raises(ExternalQueryFailure, match="No swap balance changes"):
        solana_api.parse_raydium_swap("sig", tx)


@pytest.mark.parametrize(
    ("sol", "price", "expected"),
    [
        (1.5, 140.2, "1.5 SOL ($210.30)"),
        (1.5, None, "1.5 SOL"),
        (0.0, 140.0, "0 SOL ($0.00)"),
        (1234.000000001, None, "1,234.000000001 SOL"),
    ],
)
def test_format_balance(sol: float, price: float | None, expected: str) -> None:
    assert solana_api.format_balance(sol, price) == expected


class FakeResponse:
    def __init__(self, payload: object, *, status_error: Exception | None = None) -> None:
        self.payload = payload
        self.status_error = status_error

    def raise_for_status(self) -> None:
        if self.status_error is not None:
            raise self.status_error

    def json(self) -> object:
        return self.payload


def test_get_sol_price_usd(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(solana_api.requests, "get", lambda *args, **kwargs: FakeResponse({"solana": {"usd": 151.25}}))

    assert solana_api.get_sol_price_usd() == 151.25


def test_get_sol_price_usd_returns_none_on_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        solana_api.requests,
        "get",
        lambda *args, **kwargs: FakeResponse({}, status_error=RuntimeError("429 Too Many Requests")),
    )

    assert solana_api.get_sol_price_usd() is None


class FakeClient:
    def __init__(self, *, lamports: int = 0, transaction: dict[str, object] | None = None) -> None:
        self.lamports = lamports
        self.transaction = transaction
        self.calls: list[tuple[str, object, dict[str, object]]] = []

    async def get_balance(self, pubkey: Pubkey) -> SimpleNamespace:
        self.calls.append(("get_balance", pubkey, {}))
        return SimpleNamespace(value=self.lamports)

    async def get_transaction(self, signature: Signature, **kwargs: object) -> SimpleNamespace:
        self.calls.append(("get_transaction", signature, kwargs))
        body = json.dumps({"jsonrpc": "2.0", "id": 1, "result": self.transaction})
        return SimpleNamespace(to_json=lambda: body)


@pytest.mark.asyncio
async def test_get_sol_balance_and_usd(monkeypatch: pytest.MonkeyPatch) -> None:
    client = FakeClient(lamports=2_500_000_000)
    monkeypatch.setattr(solana_api, "get_client", lambda: client)
    monkeypatch.setattr(solana_api, "get_sol_price_usd", lambda: 100.0)
    address = str(Pubkey.default())

    assert await solana_api.get_sol_balance_and_usd(address) == "2.5 SOL ($250.00)"
    assert client.calls[0][1] == Pubkey.default()


@pytest.mark.asyncio
async def test_get_raydium_swap_parse_data_requests_parsed_transaction(monkeypatch: pytest.MonkeyPatch) -> None:
    tx = _transaction(
        pre_tokens=[_token_balance(3, USDC, SIGNER, "5000000", 6)],
        post_tokens=[_token_balance(3, USDC, SIGNER, "0", 6)],
        post_sol=1_029_995_000,
    )
    client = FakeClient(transaction=tx)
    monkeypatch.setattr(solana_api, "get_client", lambda: client)
    signature = str(Signature.default())

    result = await solana_api.get_raydium_swap_parse_data(signature)

    _, sent_signature, kwargs = client.calls[0]
    assert sent_signature == Signature.default()
    assert kwargs == {"encoding": "jsonParsed", "max_supported_transaction_version": 0}
    assert result["signature"] == signature
    assert result["tokenIn"]["mint"] == USDC


@pytest.mark.asyncio
async def test_get_raydium_swap_parse_data_reports_missing_transaction(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(solana_api, "get_client", lambda: FakeClient(transaction=None))

    with pytest.raises(ExternalQueryFailure, match="Transaction not found"):
        await solana_api.get_raydium_swap_parse_data(str(Signature.default()))
