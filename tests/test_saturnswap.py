"""
Test suite for the SaturnSwap AMM venue and its API client

Covers:
  - BaseApi error mapping, retries, auth and proxy prefix
  - Pool record validation
  - Quote / build-order payloads
  - Unsupported local order assembly
  - Server-built orders signed and submitted by a wallet
"""

import json
from decimal import Decimal

import httpx
import pytest

# ---------------------------------------------------------------------------
# Venue imports
# ---------------------------------------------------------------------------
from dexter.api import SaturnSwapApi
from dexter.config import RequestConfig, SaturnSwapConfig
from dexter.constants import LOVELACE
from dexter.dex.models import Asset
from dexter.dex.pricing import ImpactConvention
from dexter.dex.saturnswap_amm import SaturnSwapAMM, unit_to_token
from dexter.providers import MockWalletProvider, TransactionStatus

# ---------------------------------------------------------------------------
# Exception imports
# ---------------------------------------------------------------------------
from dexter.exceptions import ApiError, MalformedRecord, UnsupportedOperation, WalletNotLoaded


TOKEN = Asset("f66d78b4a3cb3d37afa0ec36461e51ecbde00f26c8f0a68f94b69880", "69555344")
BASE_URL = "https://saturn.test"

GOOD_POOLS = [
    {
        "poolId": "pool-ada-iusd",
        "assetA": {"unit": "lovelace"},
        "assetB": {"unit": TOKEN.identifier(".")},
        "reserveA": "1000000000",
        "reserveB": 5_000_000,
        "feePercent": 0.3,
    },
    {
        "id": "pool-legacy",
        "assetA": "lovelace",
        "assetB": TOKEN.identifier(),
        "reserveA": 10,
        "reserveB": 20,
        "feePercent": "1",
    },
]

BAD_POOLS = [
    {"poolId": "bad-unit", "assetA": "lovelace", "assetB": "zz", "reserveA": 1, "reserveB": 1},
    {"assetA": "lovelace", "assetB": TOKEN.identifier(), "reserveA": 1, "reserveB": 1},
    "not-a-record",
    {"poolId": "fractional", "assetA": "lovelace", "assetB": TOKEN.identifier(), "reserveA": "1.5", "reserveB": 1},
    {"poolId": "negative", "assetA": "lovelace", "assetB": TOKEN.identifier(), "reserveA": -5, "reserveB": 1},
    {"poolId": "bool-fee", "assetA": "lovelace", "assetB": TOKEN.identifier(),
     "reserveA": 1, "reserveB": 1, "feePercent": True},
]


class Recorder:
    """httpx MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


def _api(recorder, api_key="", retries=0, proxy_url=""):
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return SaturnSwapApi(
        SaturnSwapConfig(base_url=BASE_URL, api_key=api_key),
        RequestConfig(retries=retries, proxy_url=proxy_url),
        client=client,
    )


# ============================================================================
#  API CLIENT
# ============================================================================

class TestApiClient:
    """HTTP plumbing."""

    @pytest.mark.asyncio
    async def test_pools_request(self):
        recorder = Recorder(httpx.Response(200, json={"pools": GOOD_POOLS}))
        api = _api(recorder, api_key="secret")

        pools = await api.get_amm_pools()

        assert pools == GOOD_POOLS
        request = recorder.requests[0]
        assert request.method == "GET"
        assert str(request.url) == f"{BASE_URL}/v1/aggregator/pools"
        assert request.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_no_auth_header_without_key(self):
        recorder = Recorder(httpx.Response(200, json={"pools": []}))
        await _api(recorder).get_amm_pools()
        assert "Authorization" not in recorder.requests[0].headers

    @pytest.mark.asyncio
    async def test_proxy_prefix(self):
        recorder = Recorder(httpx.Response(200, json={"pools": []}))
        await _api(recorder, proxy_url="https://proxy.test").get_amm_pools()
        assert str(recorder.requests[0].url).startswith("https://proxy.test/https://saturn.test")

    @pytest.mark.asyncio
    async def test_pool_by_id(self):
        recorder = Recorder(httpx.Response(200, json=GOOD_POOLS[0]))
        pool = await _api(recorder).get_amm_pool_by_id("pool-ada-iusd")
        assert pool["poolId"] == "pool-ada-iusd"
        assert recorder.requests[0].url.params["id"] == "pool-ada-iusd"

    @pytest.mark.asyncio
    async def test_status_error(self):
        recorder = Recorder(httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(ApiError, match="500"):
            await _api(recorder, retries=3).get_amm_pools()
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_network_error_retried(self):
        recorder = Recorder(httpx.ConnectError("connection refused"))
        with pytest.raises(ApiError, match="connection refused"):
            await _api(recorder, retries=2).get_amm_pools()
        assert len(recorder.requests) == 3

    @pytest.mark.asyncio
    async def test_network_error_then_success(self):
        recorder = Recorder(
            httpx.ConnectError("connection refused"),
            httpx.Response(200, json={"pools": GOOD_POOLS}),
        )
        pools = await _api(recorder, retries=1).get_amm_pools()
        assert len(pools) == 2

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        recorder = Recorder(httpx.Response(200, text="<html>"))
        with pytest.raises(ApiError, match="invalid JSON"):
            await _api(recorder).get_amm_pools()

    @pytest.mark.asyncio
    async def test_unexpected_payload(self):
        with pytest.raises(ApiError):
            await _api(Recorder(httpx.Response(200, json=[1, 2]))).get_amm_pools()
        with pytest.raises(ApiError):
            await _api(Recorder(httpx.Response(200, json={"pools": "none"}))).get_amm_pools()

    @pytest.mark.asyncio
    async def test_quote_payload(self):
        recorder = Recorder(httpx.Response(200, json={"estimatedOut": "99"}))

        quote = await _api(recorder).amm_quote("pool-ada-iusd", "in", 10_000_000, slippage_bps=50)

        assert quote == {"estimatedOut": "99"}
        assert recorder.requests[0].method == "POST"
        assert recorder.requests[0].url.path == "/v1/aggregator/amm/quote"
        assert recorder.last_json == {
            "poolId": "pool-ada-iusd",
            "direction": "in",
            "swapInAmount": 10_000_000,
            "slippageBps": 50,
        }

    @pytest.mark.asyncio
    async def test_build_payload(self):
        recorder = Recorder(httpx.Response(200, json={"unsignedCborHex": "84a4"}))

        await _api(recorder).amm_build_order(
            "pool-ada-iusd", "out", 500, "addr1change", partner_address="addr1partner"
        )

        assert recorder.requests[0].url.path == "/v1/aggregator/amm/build-order"
        assert recorder.last_json == {
            "poolId": "pool-ada-iusd",
            "direction": "out",
            "swapOutAmount": 500,
            "changeAddress": "addr1change",
            "partnerAddress": "addr1partner",
        }

    @pytest.mark.asyncio
    async def test_bad_direction(self):
        recorder = Recorder(httpx.Response(200, json={}))
        with pytest.raises(ValueError):
            await _api(recorder).amm_quote("pool", "sideways", 1)
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        api = SaturnSwapApi(SaturnSwapConfig(base_url=BASE_URL))
        client = api.client
        await api.close()
        assert client.is_closed


# ============================================================================
#  VENUE ADAPTER
# ============================================================================

def _venue(recorder):
    return SaturnSwapAMM(api=_api(recorder))


class TestSaturnSwapAMM:
    """Pool records to LiquidityPool and server-built orders."""

    @pytest.mark.asyncio
    async def test_pools(self):
        recorder = Recorder(httpx.Response(200, json={"pools": GOOD_POOLS + BAD_POOLS}))

        pools = await _venue(recorder).liquidity_pools()

        assert [p.identifier for p in pools] == ["pool-ada-iusd", "pool-legacy"]
        first = pools[0]
        assert first.dex == "SaturnSwap-AMM"
        assert first.asset_a == LOVELACE
        assert first.asset_b == TOKEN
        assert first.reserve_a == 1_000_000_000
        assert first.reserve_b == 5_000_000
        assert first.pool_fee_percent == Decimal("0.3")
        assert first.uuid == "SaturnSwap-AMM:pool-ada-iusd"
        assert pools[1].pool_fee_percent == Decimal(1)

    @pytest.mark.asyncio
    async def test_non_finite_reserve_skipped(self):
        body = json.dumps({"pools": [
            {"poolId": "inf", "assetA": "lovelace", "assetB": TOKEN.identifier(),
             "reserveA": float("inf"), "reserveB": 1},
            GOOD_POOLS[0],
        ]})
        assert "Infinity" in body
        recorder = Recorder(httpx.Response(200, text=body))

        pools = await _venue(recorder).liquidity_pools()

        assert [p.identifier for p in pools] == ["pool-ada-iusd"]

    @pytest.mark.parametrize("reserve", [float("inf"), float("-inf"), "Infinity", "NaN", "sNaN"])
    def test_non_finite_reserve_values(self, reserve):
        record = {"poolId": "p", "assetA": "lovelace", "assetB": TOKEN.identifier(),
                  "reserveA": 1, "reserveB": reserve}
        assert SaturnSwapAMM().pool_from_record(record) is None

    @pytest.mark.parametrize("fee", ["Infinity", "-Infinity", "NaN"])
    def test_non_finite_fee(self, fee):
        record = {"poolId": "p", "assetA": "lovelace", "assetB": TOKEN.identifier(),
                  "reserveA": 1, "reserveB": 1, "feePercent": fee}
        assert SaturnSwapAMM().pool_from_record(record) is None

    @pytest.mark.asyncio
    async def test_pools_endpoint_failure(self):
        with pytest.raises(ApiError):
            await _venue(Recorder(httpx.Response(503))).liquidity_pools()

    def test_marginal_impact(self):
        assert SaturnSwapAMM.pricing.impact_convention is ImpactConvention.MARGINAL

    @pytest.mark.asyncio
    async def test_unsigned_hex(self):
        recorder = Recorder(httpx.Response(200, json={"unsignedCborHex": "84a400"}))
        unsigned = await _venue(recorder).create_amm_unsigned_hex("pool-ada-iusd", "in", 1_000, "addr1change")
        assert unsigned == "84a400"

    @pytest.mark.asyncio
    async def test_unsigned_hex_missing(self):
        recorder = Recorder(httpx.Response(200, json={"status": "ok"}))
        with pytest.raises(ApiError):
            await _venue(recorder).create_amm_unsigned_hex("pool-ada-iusd", "in", 1_000, "addr1change")

    @pytest.mark.asyncio
    async def test_quote_passthrough(self):
        recorder = Recorder(httpx.Response(200, json={"estimatedOut": "5"}))
        assert await _venue(recorder).amm_quote("pool-ada-iusd", "in", 10) == {"estimatedOut": "5"}

    def test_local_orders_unsupported(self):
        venue = SaturnSwapAMM()
        with pytest.raises(UnsupportedOperation):
            venue.build_swap_order(None, {})
        with pytest.raises(UnsupportedOperation):
            venue.build_cancel_swap_order([], "addr1")
        assert venue.swap_order_fees() == []


class FailingSubmitWallet(MockWalletProvider):
    async def submit_transaction(self, transaction):
        raise ApiError("node rejected transaction")


class TestSignAndSubmit:
    """Server-built orders handed to a wallet."""

    @pytest.mark.asyncio
    async def test_signs_and_submits_built_transaction(self):
        recorder = Recorder(httpx.Response(200, json={"unsignedCborHex": "84a400"}))
        wallet = MockWalletProvider().load_wallet_from_seed_phrase(["seed"])

        tx_hash = await _venue(recorder).build_amm_sign_submit(
            "pool-ada-iusd", "in", 1_000, "addr1change", wallet, slippage_bps=50
        )

        assert recorder.requests[0].url.path == "/v1/aggregator/amm/build-order"
        assert recorder.last_json["slippageBps"] == 50
        [transaction] = wallet.submitted
        assert transaction.cbor_hex == "84a400"
        assert transaction.is_signed is True
        assert transaction.status is TransactionStatus.SUBMITTED
        assert tx_hash == transaction.hash and len(tx_hash) == 64

    @pytest.mark.asyncio
    async def test_distinct_hashes_per_transaction(self):
        wallet = MockWalletProvider().load_wallet_from_seed_phrase(["seed"])
        first = await _venue(Recorder(httpx.Response(200, json={"unsignedCborHex": "84a400"}))).build_amm_sign_submit(
            "pool-ada-iusd", "in", 1_000, "addr1change", wallet
        )
        second = await _venue(Recorder(httpx.Response(200, json={"unsignedCborHex": "84a401"}))).build_amm_sign_submit(
            "pool-ada-iusd", "in", 1_000, "addr1change", wallet
        )
        assert first != second

    @pytest.mark.asyncio
    @pytest.mark.parametrize("wallet", [None, MockWalletProvider()])
    async def test_requires_loaded_wallet(self, wallet):
        recorder = Recorder(httpx.Response(200, json={"unsignedCborHex": "84a400"}))
        with pytest.raises(WalletNotLoaded):
            await _venue(recorder).build_amm_sign_submit("pool-ada-iusd", "in", 1_000, "addr1change", wallet)
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_missing_transaction(self):
        wallet = MockWalletProvider().load_wallet_from_seed_phrase(["seed"])
        recorder = Recorder(httpx.Response(200, json={}))
        with pytest.raises(ApiError, match="unsigned CBOR"):
            await _venue(recorder).build_amm_sign_submit("pool-ada-iusd", "in", 1_000, "addr1change", wallet)
        assert wallet.submitted == []

    @pytest.mark.asyncio
    async def test_submit_failure_marks_transaction(self):
        wallet = FailingSubmitWallet().load_wallet_from_seed_phrase(["seed"])
        created = []
        original = wallet.new_transaction_from_hex

        def capture(cbor_hex):
            transaction = original(cbor_hex)
            created.append(transaction)
            return transaction

        wallet.new_transaction_from_hex = capture
        recorder = Recorder(httpx.Response(200, json={"unsignedCborHex": "84a400"}))

        with pytest.raises(ApiError, match="node rejected"):
            await _venue(recorder).build_amm_sign_submit("pool-ada-iusd", "in", 1_000, "addr1change", wallet)

        [transaction] = created
        assert transaction.status is TransactionStatus.ERRORED
        assert transaction.error == "node rejected transaction"


class TestUnits:
    """Asset unit parsing."""

    def test_native(self):
        assert unit_to_token("lovelace") == LOVELACE
        assert unit_to_token("") == LOVELACE
        assert unit_to_token(None) == LOVELACE

    def test_token(self):
        assert unit_to_token(TOKEN.identifier()) == TOKEN
        assert unit_to_token(TOKEN.identifier(".")) == TOKEN

    def test_invalid(self):
        with pytest.raises(MalformedRecord):
            unit_to_token("not-hex")
        with pytest.raises(MalformedRecord):
            unit_to_token(42)
