import pytest
from unittest.mock import AsyncMock

from eth_abi import encode

from tempo_daily.contracts import (
    SELECTORS,
    Tip20Token,
    Tip403Registry,
    encode_approve,
    encode_permit2_approve,
    encode_set_user_token,
    encode_transfer,
)

SINK = "0x2222222222222222222222222222222222222222"
TOKEN = "0x20c0000000000000000000000000000000000001"


def test_well_known_selectors():
    assert SELECTORS["transfer"] == "0xa9059cbb"
    assert SELECTORS["approve"] == "0x095ea7b3"
    assert SELECTORS["balanceOf"] == "0x70a08231"
    assert SELECTORS["decimals"] == "0x313ce567"


def test_transfer_calldata():
    data = encode_transfer(SINK, 1_000_000)

    assert data == "0xa9059cbb" + "0" * 24 + SINK[2:] + format(1_000_000, "064x")
    assert len(data) == 2 + 8 + 64 * 2


def test_approve_max_amount():
    data = encode_approve(SINK, 2**256 - 1)

    assert data.endswith("f" * 64)


def test_permit2_approve_calldata_layout():
    data = encode_permit2_approve(TOKEN, SINK, 2**160 - 1, 2**48 - 1)

    assert data.startswith(SELECTORS["permit2Approve"])
    words = [data[10 + i * 64: 10 + (i + 1) * 64] for i in range(4)]
    assert words[0].endswith(TOKEN[2:])
    assert words[1].endswith(SINK[2:])
    assert int(words[2], 16) == 2**160 - 1
    assert int(words[3], 16) == 2**48 - 1


def test_set_user_token_calldata():
    assert encode_set_user_token(TOKEN) == SELECTORS["setUserToken"] + TOKEN[2:].zfill(64)


def test_bad_address_rejected():
    with pytest.raises(ValueError):
        encode_transfer("0x1234", 1)


@pytest.mark.asyncio
async def test_token_reads():
    ledger = AsyncMock()
    ledger.call = AsyncMock(return_value="0x" + format(6, "064x"))
    token = Tip20Token(ledger, TOKEN, "AlphaUSD")

    assert await token.decimals() == 6
    ledger.call.assert_awaited_with(TOKEN, SELECTORS["decimals"])


@pytest.mark.asyncio
async def test_currency_decodes_abi_string():
    ledger = AsyncMock()
    ledger.call = AsyncMock(return_value="0x" + encode(["string"], ["USD"]).hex())

    assert await Tip20Token(ledger, TOKEN).currency() == "USD"


@pytest.mark.asyncio
async def test_empty_call_result_rejected():
    ledger = AsyncMock()
    ledger.call = AsyncMock(return_value="0x")

    with pytest.raises(ValueError):
        await Tip20Token(ledger, TOKEN).balance_of(SINK)


@pytest.mark.asyncio
async def test_registry_is_authorized():
    ledger = AsyncMock()
    ledger.call = AsyncMock(return_value="0x" + format(1, "064x"))

    assert await Tip403Registry(ledger, "0x403c000000000000000000000000000000000000").is_authorized(2, SINK)
    data = ledger.call.await_args.args[1]
    assert data == SELECTORS["isAuthorized"] + format(2, "064x") + SINK[2:].zfill(64)


@pytest.mark.asyncio
async def test_empty_currency_result_rejected():
    ledger = AsyncMock()
    ledger.call = AsyncMock(return_value="0x")

    with pytest.raises(ValueError) as exc_info:
        await Tip20Token(ledger, TOKEN, "AlphaUSD").currency()

    assert "empty currency() result for AlphaUSD" in str(exc_info.value)


@pytest.mark.asyncio
async def test_truncated_currency_result_rejected():
    ledger = AsyncMock()
    ledger.call = AsyncMock(return_value="0x" + format(32, "064x"))

    with pytest.raises(ValueError) as exc_info:
        await Tip20Token(ledger, TOKEN, "AlphaUSD").currency()

    assert "undecodable currency() result for AlphaUSD" in str(exc_info.value)
