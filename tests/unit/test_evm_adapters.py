"""Unit tests for the ERC-20, Aave and Uniswap adapters with a mocked client."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import decode, encode
from eth_utils import decode_hex, encode_hex

from leverage_loop.chains.evm import Erc20Token
from leverage_loop.errors import ProtocolError, TransferError
from leverage_loop.models import FULL_BALANCE, SwapParams
from leverage_loop.protocols.aave import AaveDebtToken, AavePool
from leverage_loop.protocols.uniswap import UniswapV3Router

SENDER = "0x" + "e" * 40
OWNER = "0x" + "a" * 40
TOKEN_A = "0x" + "1" * 40
TOKEN_B = "0x" + "2" * 40
POOL = "0x" + "4" * 40
ORACLE = "0x" + "7" * 40


def _words(types: list[str], values: list) -> str:
    return encode_hex(encode(types, values))


def _args(types: list[str], calldata: str) -> tuple:
    """Decode the arguments of ``calldata`` after its 4-byte selector."""
    return decode(types, decode_hex(calldata)[4:])


@pytest.fixture()
def client() -> MagicMock:
    c = MagicMock()
    c.sender = SENDER
    c.eth_call = AsyncMock(return_value="0x")
    c.execute = AsyncMock(return_value="0x")
    return c


class TestErc20Token:
    @pytest.mark.asyncio
    async def test_balance_of(self, client: MagicMock) -> None:
        client.eth_call.return_value = _words(["uint256"], [123])
        token = Erc20Token(client, TOKEN_A)
        assert await token.balance_of(OWNER) == 123
        to, data = client.eth_call.call_args.args
        assert to.lower() == TOKEN_A
        assert data.startswith("0x70a08231")

    @pytest.mark.asyncio
    async def test_transfer_uses_sender(self, client: MagicMock) -> None:
        client.execute.return_value = _words(["bool"], [True])
        assert await Erc20Token(client, TOKEN_A).transfer(OWNER, 5) is True
        assert client.execute.call_args.args[2] == SENDER

    @pytest.mark.asyncio
    async def test_failed_transfer_raises_transfer_error(self, client: MagicMock) -> None:
        client.execute.side_effect = ProtocolError("reverted")
        with pytest.raises(TransferError):
            await Erc20Token(client, TOKEN_A).transfer(OWNER, 5)

    @pytest.mark.asyncio
    async def test_approve_false(self, client: MagicMock) -> None:
        client.execute.return_value = _words(["bool"], [False])
        assert await Erc20Token(client, TOKEN_A).approve(POOL, 5) is False


class TestAavePool:
    @pytest.mark.asyncio
    async def test_account_data_in_borrow_units(self, client: MagicMock) -> None:
        client.eth_call.side_effect = [
            _words(["uint256"] * 6, [2_000 * 10**8, 500 * 10**8, 1_000 * 10**8, 8_250, 8_000, 2 * 10**18]),
            _words(["uint256"], [2 * 10**8]),
            _words(["uint256"], [18]),
        ]
        pool = AavePool(client, POOL, ORACLE, TOKEN_B)

        data = await pool.get_user_account_data(OWNER)

        # 1000 USD of headroom at 2 USD per token
        assert data.available_borrows == 500 * 10**18
        assert data.total_debt == 500 * 10**8
        assert data.ltv_bps == 8_000
        assert data.health_factor == 2.0

    @pytest.mark.asyncio
    async def test_decimals_read_once(self, client: MagicMock) -> None:
        account = _words(["uint256"] * 6, [1, 0, 10**8, 0, 8_000, 10**18])
        price = _words(["uint256"], [10**8])
        client.eth_call.side_effect = [account, price, _words(["uint256"], [6]), account, price]
        pool = AavePool(client, POOL, ORACLE, TOKEN_B)

        await pool.get_user_account_data(OWNER)
        second = await pool.get_user_account_data(OWNER)

        assert second.available_borrows == 10**6
        assert client.eth_call.call_count == 5

    @pytest.mark.asyncio
    async def test_missing_price(self, client: MagicMock) -> None:
        client.eth_call.side_effect = [
            _words(["uint256"] * 6, [0, 0, 0, 0, 0, 0]),
            _words(["uint256"], [0]),
        ]
        with pytest.raises(ProtocolError, match="no price"):
            await AavePool(client, POOL, ORACLE, TOKEN_B).get_user_account_data(OWNER)

    @pytest.mark.asyncio
    async def test_malformed_account_data(self, client: MagicMock) -> None:
        client.eth_call.return_value = "0x"
        with pytest.raises(ProtocolError, match="Malformed"):
            await AavePool(client, POOL, ORACLE, TOKEN_B).get_user_account_data(OWNER)

    @pytest.mark.asyncio
    async def test_supply_calldata(self, client: MagicMock) -> None:
        await AavePool(client, POOL, ORACLE, TOKEN_B).supply(TOKEN_A, 10, OWNER, 0)
        to, data = client.execute.call_args.args
        assert to.lower() == POOL
        assert data.startswith("0x617ba037")
        asset, amount, on_behalf_of, referral = _args(
            ["address", "uint256", "address", "uint16"], data
        )
        assert (asset.lower(), amount, on_behalf_of.lower(), referral) == (TOKEN_A, 10, OWNER, 0)

    @pytest.mark.asyncio
    async def test_borrow_calldata(self, client: MagicMock) -> None:
        await AavePool(client, POOL, ORACLE, TOKEN_B).borrow(TOKEN_B, 7, 2, 0, OWNER)
        data = client.execute.call_args.args[1]
        asset, amount, rate_mode, _, on_behalf_of = _args(
            ["address", "uint256", "uint256", "uint16", "address"], data
        )
        assert (asset.lower(), amount, rate_mode, on_behalf_of.lower()) == (TOKEN_B, 7, 2, OWNER)

    @pytest.mark.asyncio
    async def test_repay_returns_amount(self, client: MagicMock) -> None:
        client.execute.return_value = _words(["uint256"], [42])
        assert await AavePool(client, POOL, ORACLE, TOKEN_B).repay(TOKEN_B, 50, 2, OWNER) == 42

    @pytest.mark.asyncio
    async def test_withdraw_sent_by_owner(self, client: MagicMock) -> None:
        client.execute.return_value = _words(["uint256"], [99])
        pool = AavePool(client, POOL, ORACLE, TOKEN_B)

        assert await pool.withdraw(TOKEN_A, FULL_BALANCE, SENDER, OWNER) == 99

        data = client.execute.call_args.args[1]
        assert data.startswith("0x69328dec")
        assert _args(["address", "uint256", "address"], data)[1] == FULL_BALANCE
        assert client.execute.call_args.kwargs["sender"].lower() == OWNER


class TestAaveDebtToken:
    @pytest.mark.asyncio
    async def test_debt_balance(self, client: MagicMock) -> None:
        client.eth_call.return_value = _words(["uint256"], [3])
        assert await AaveDebtToken(client, TOKEN_B).balance_of(OWNER) == 3
        to, data = client.eth_call.call_args.args
        assert to.lower() == TOKEN_B
        assert data.startswith("0x70a08231")

    @pytest.mark.asyncio
    async def test_borrow_allowance(self, client: MagicMock) -> None:
        client.eth_call.return_value = _words(["uint256"], [77])
        assert await AaveDebtToken(client, TOKEN_B).borrow_allowance(OWNER, SENDER) == 77

    @pytest.mark.asyncio
    async def test_approve_delegation_from_owner(self, client: MagicMock) -> None:
        await AaveDebtToken(client, TOKEN_B).approve_delegation(OWNER, SENDER, 1_000)
        data = client.execute.call_args.args[1]
        delegatee, amount = _args(["address", "uint256"], data)
        assert (delegatee.lower(), amount) == (SENDER, 1_000)
        assert client.execute.call_args.kwargs["sender"].lower() == OWNER


class TestUniswapV3Router:
    @pytest.mark.asyncio
    async def test_exact_input_single(self, client: MagicMock) -> None:
        client.execute.return_value = _words(["uint256"], [995])
        router = UniswapV3Router(client, POOL)
        params = SwapParams(TOKEN_B, TOKEN_A, 3_000, SENDER, 1_000, 1)

        assert await router.exact_input_single(params) == 995

        data = client.execute.call_args.args[1]
        assert data.startswith("0x04e45aaf")
        (decoded,) = _args(["(address,address,uint24,address,uint256,uint256,uint160)"], data)
        token_in, token_out, fee, recipient, amount_in, minimum, limit = decoded
        assert (token_in.lower(), token_out.lower(), recipient.lower()) == (TOKEN_B, TOKEN_A, SENDER)
        assert (fee, amount_in, minimum, limit) == (3_000, 1_000, 1, 0)
