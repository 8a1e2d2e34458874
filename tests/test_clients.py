"""
tests.test_clients

Client boundaries: Slack Web API and Solana RPC error translation; keypair loading.
"""

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest
from solana.rpc.core import UnconfirmedTxError
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from stake_pool_updater.chain.signer import KeypairSigner
from stake_pool_updater.clients.rpc import SolanaRpcClient
from stake_pool_updater.clients.slack import SlackClient
from stake_pool_updater.errors import NotificationError, TransportError


def _slack(handler) -> tuple[SlackClient, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SlackClient(token="xoxb-1", http=http), http


@pytest.mark.asyncio
async def test_slack_posts_message() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client, http = _slack(handler)
    async with http:
        await client.send_message(channel="C1", text="hello")

    assert seen[0].url.path == "/api/chat.postMessage"
    assert seen[0].headers["authorization"] == "Bearer xoxb-1"
    assert json.loads(seen[0].content) == {"channel": "C1", "text": "hello"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"ok": False, "error": "channel_not_found"}),
        httpx.Response(503, text="unavailable"),
    ],
)
async def test_slack_failures_raise_notification_error(response: httpx.Response) -> None:
    client, http = _slack(lambda request: response)
    async with http:
        with pytest.raises(NotificationError):
            await client.send_message(channel="C1", text="hello")


class StubAsyncClient:
    def __init__(self, **responses) -> None:
        self._responses = responses

    def __getattr__(self, name: str):
        async def call(*args, **kwargs):
            result = self._responses[name]
            if isinstance(result, Exception):
                raise result
            return result

        return call


@pytest.mark.asyncio
async def test_rpc_missing_account_is_transport_error() -> None:
    rpc = SolanaRpcClient(rpc_url="http://rpc.test", client=StubAsyncClient(get_account_info=SimpleNamespace(value=None)))  # type: ignore[arg-type]
    with pytest.raises(TransportError, match="not found"):
        await rpc.get_account_bytes(Pubkey.new_unique())


@pytest.mark.asyncio
async def test_rpc_error_response_is_transport_error() -> None:
    # Error payloads decode to objects without `value`.
    rpc = SolanaRpcClient(rpc_url="http://rpc.test", client=StubAsyncClient(get_balance=SimpleNamespace(message="Node is behind")))  # type: ignore[arg-type]
    with pytest.raises(TransportError, match="get_balance"):
        await rpc.get_balance(Pubkey.new_unique())


@pytest.mark.asyncio
async def test_rpc_network_error_is_transport_error() -> None:
    rpc = SolanaRpcClient(rpc_url="http://rpc.test", client=StubAsyncClient(get_epoch_info=httpx.ConnectError("refused")))  # type: ignore[arg-type]
    with pytest.raises(TransportError, match="get_epoch_info"):
        await rpc.get_epoch_info()


@pytest.mark.asyncio
async def test_rpc_reads_account_data_and_epoch() -> None:
    rpc = SolanaRpcClient(
        rpc_url="http://rpc.test",
        client=StubAsyncClient(  # type: ignore[arg-type]
            get_account_info=SimpleNamespace(value=SimpleNamespace(data=b"\x01\x02")),
            get_epoch_info=SimpleNamespace(
                value=SimpleNamespace(epoch=612, slot_index=5, slots_in_epoch=432_000, absolute_slot=264_384_005)
            ),
        ),
    )

    assert await rpc.get_account_bytes(Pubkey.new_unique()) == b"\x01\x02"
    info = await rpc.get_epoch_info()
    assert (info.epoch, info.slots_in_epoch) == (612, 432_000)


def _unsigned_tx() -> Transaction:
    return Transaction.new_unsigned(Message.new_with_blockhash([], Pubkey.new_unique(), Hash.default()))


@pytest.mark.asyncio
async def test_rpc_confirmed_transaction_with_error_raises() -> None:
    rpc = SolanaRpcClient(
        rpc_url="http://rpc.test",
        client=StubAsyncClient(  # type: ignore[arg-type]
            send_raw_transaction=SimpleNamespace(value=Signature.default()),
            confirm_transaction=SimpleNamespace(value=[SimpleNamespace(err="InstructionError")]),
        ),
    )
    with pytest.raises(TransportError, match="InstructionError"):
        await rpc.send_and_confirm(_unsigned_tx())


@pytest.mark.asyncio
async def test_rpc_confirmed_transaction_returns_signature() -> None:
    rpc = SolanaRpcClient(
        rpc_url="http://rpc.test",
        client=StubAsyncClient(  # type: ignore[arg-type]
            send_raw_transaction=SimpleNamespace(value=Signature.default()),
            confirm_transaction=SimpleNamespace(value=[SimpleNamespace(err=None)]),
        ),
    )
    assert await rpc.send_and_confirm(_unsigned_tx()) == Signature.default()


@pytest.mark.asyncio
async def test_rpc_unconfirmed_transaction_is_transport_error() -> None:
    rpc = SolanaRpcClient(
        rpc_url="http://rpc.test",
        client=StubAsyncClient(  # type: ignore[arg-type]
            send_raw_transaction=SimpleNamespace(value=Signature.default()),
            confirm_transaction=UnconfirmedTxError("not confirmed in time"),
        ),
    )
    with pytest.raises(TransportError, match="confirm_transaction"):
        await rpc.send_and_confirm(_unsigned_tx())


@pytest.mark.asyncio
async def test_rpc_simulation_result_is_mapped() -> None:
    rpc = SolanaRpcClient(
        rpc_url="http://rpc.test",
        client=StubAsyncClient(  # type: ignore[arg-type]
            simulate_transaction=SimpleNamespace(
                value=SimpleNamespace(units_consumed=41_000, err="AccountNotFound", logs=["Program log: x"])
            ),
        ),
    )
    result = await rpc.simulate(_unsigned_tx())

    assert result.units_consumed == 41_000
    assert result.err == "AccountNotFound"
    assert result.logs == ("Program log: x",)


@pytest.mark.asyncio
async def test_rpc_fee_and_blockhash() -> None:
    blockhash = Hash.new_unique()
    rpc = SolanaRpcClient(
        rpc_url="http://rpc.test",
        client=StubAsyncClient(  # type: ignore[arg-type]
            get_fee_for_message=SimpleNamespace(value=None),
            get_latest_blockhash=SimpleNamespace(value=SimpleNamespace(blockhash=blockhash)),
        ),
    )

    assert await rpc.get_fee_for_message(_unsigned_tx().message) is None
    assert await rpc.get_latest_blockhash() == blockhash


def test_keypair_signer_accepts_base58_and_json() -> None:
    keypair = Keypair()
    from_base58 = KeypairSigner.from_secret(str(keypair))
    from_json = KeypairSigner.from_secret(json.dumps(list(bytes(keypair))))

    assert from_base58.pubkey() == from_json.pubkey() == keypair.pubkey()
    assert str(keypair) not in repr(from_base58)


@pytest.mark.parametrize("secret", ["not-a-key!", "[1, 2, 3]", "[\"x\"]"])
def test_keypair_signer_rejects_garbage(secret: str) -> None:
    with pytest.raises(ValueError):
        KeypairSigner.from_secret(secret)
