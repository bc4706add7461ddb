"""
CSwap datum definitions and on-chain constants.

Pool datum (DexPoolDatum)::

    Constr 0 [lp, lp_fee_10k, token_a_id, token_a_name,
              token_b_id, token_b_name, lp_id, lp_name]

Order datum::

    Constr 0 [owner_address,
              target_min_value_arr : [[policy, name, qty], ...],
              input_asset_arr      : [[policy, name, 0]],
              order_type           : Constr 0 [] (swap),
              slippage_10k, platform_fee_10k]

Swaps into a token carry a second target row returning the ADA deposit.
"""

from dexter.plutus.template import DatumParameterKey as K

POOL_ADDRESS = (
    'addr1z8ke0c9p89rjfwmuh98jpt8ky74uy5mffjft3zlcld9h7ml3lmln3mwk0y3zsh3gs3dzqlwa9rjzrxawkwm4udw9axhs6fuu6e'
)
ORDER_ADDRESS = (
    'addr1z8d9k3aw6w24eyfjacy809h68dv2rwnpw0arrfau98jk6nhv88awp8sgxk65d6kry0mar3rd0dlkfljz7dv64eu39vfs38yd9p'
)

MIN_POOL_ADA = 2_000_000
CONTRACT_LOVELACE = 2_000_000
BATCHER_FEE = 690_000
PLATFORM_FEE_10K = 15

CANCEL_REDEEMER = 'd87a80'

# Plutus V3 orderbook validator
ORDERBOOK_SCRIPT_CBOR = (
    '5905fb0101003333232323232323223223223225333008323232323253323300e3001300f37540042646644646464a66'
    '602860060022a66602e602c6ea80240085854ccc050c01c0044c8c8c8c94ccc06cc07800801858dd6980e000980e0011'
    'bad301a001301637540122a66602866e1d20040011323232323232533301d302000200816375a603c002603c0046eb4c'
    '070004c070008dd6980d000980b1baa0091630143754010264646464646464646464646464a66603e601c00226464a66'
    '6042602060446ea80044c94ccc088c044c08cdd5009099192999812180998129baa00113253330253322323300100100'
    '322533302c00114a026644a66605666e3c0080145288998020020009bae302e001302f00137586054605660566056605'
    '66056605660566056604e6ea806cdd7181518139baa0021301800114a06601c0204a66604a66ebcc040c09cdd5000980'
    '818139baa00313375e6014604e6ea8004c028c09cdd5180518139baa00414a02c601c604a6ea8c038c094dd500098139'
    '8121baa01210033026302337540022c646600200201c44a66604a002298103d87a80001332253330243375e601e604c6'
    'ea80080544c034cc0a00092f5c0266008008002604e00260500026666004900080600e80d8a99980f980900089919912'
    '50375a604a0026eb4c094c098004c084dd500a099191999112999812180998129baa0141323253330263232533302833'
    '71000e90000980d9980900a1299981499baf3014302b3754002602860566ea80144cc008dd6180718159baa005233712'
    '6eb4c010004ccc040dd5980798161baa002375c602a0026eb8c03c0045280992999814992999815180c98159baa00113'
    '23300f02523375e602e605c6ea8c044c0b8dd5001000981798161baa00114a06602002c00e20022940c94ccc0a4c060c'
    '0a8dd5000899198019bac300f302c375400c466e24dd698028009998089bab3010302d37540046eb8c058004dd718080'
    '00981718159baa00114a06601e02800e44646600200200644a66605c00229444cc894ccc0b4c0140084cc01001000452'
    '81bac303000130310012302c302d302d001100114a066660100040240460426052604c6ea805058dd698130011bad302'
    '6001375a604c604e002604c00260426ea8050c07cdd50099111299981099b89480000104c94ccc088c044c08cdd50008'
    '99b8948008ccc020dd5980398121baa300730243754604e60486ea800400c00852819804001802099802801919b89480'
    '08ccc020dd5980398121baa30073024375400200600444646600200200644a66604600229404cc894ccc088c01400852'
    '88998020020009812800981300091810981100091119299980f1808980f9baa0011480004dd6981198101baa00132533'
    '301e3011301f37540022980103d87a8000132330010013756604860426ea8008894ccc08c004530103d87a8000132333'
    '2225333024337220100062a66604866e3c02000c4c034cc0a0dd400125eb80530103d87a8000133006006001375c6044'
    '0026eb4c08c004c09c008c094004c8cc004004010894ccc0880045300103d87a80001323332225333023337220100062'
    'a66604666e3c02000c4c030cc09cdd300125eb80530103d87a8000133006006001375c60420026eacc088004c098008c'
    '090004c0040048894ccc078008530103d87a800013322533301d300c00313006330210024bd70099980280280099b800'
    '0348004c080008c084008dd2a400044646600200200644a66603a0022900009991299980e1802801099b800014800840'
    '04c07c004cc008008c0800048c06c004dd6180c980d180d0011bac3018001301437540106e1d20003014001301430150'
    '01301037540046e1d200216301130120033010002300f002300f001300a375400229309b2b1bac001375c0026eb80055'
    'cd2ab9d5573caae7d5d02ba1574498011e581cc11604bc944b14c293b7ea6ad6583f0efedab38bbadebe2f5af4c09b00'
    '4c0103424342004c01529fd8799fd87a9f581ced97e0a1394724bb7cb94f20acf627abc253694c92b88bf8fb4b7f6fff'
    'd8799fd8799fd8799f581cf1feff38edd67922285e28845a207ddd2'
)


# ---------------------------------------------------------------------------
# Pool datum
# ---------------------------------------------------------------------------

POOL_DATUM = {
    "constructor": 0,
    "fields": [
        {"int": K.TotalLpTokens},
        {"int": K.LpFee},
        {"bytes": K.PoolAssetAPolicyId},
        {"bytes": K.PoolAssetAAssetName},
        {"bytes": K.PoolAssetBPolicyId},
        {"bytes": K.PoolAssetBAssetName},
        {"bytes": K.LpTokenPolicyId},
        {"bytes": K.LpTokenAssetName},
    ],
}


# ---------------------------------------------------------------------------
# Order datum
# ---------------------------------------------------------------------------

_OWNER_ADDRESS = {
    "constructor": 0,
    "fields": [
        {"constructor": 0, "fields": [{"bytes": K.SenderPubKeyHash}]},
        {"constructor": 0, "fields": [
            {"constructor": 0, "fields": [
                {"constructor": 0, "fields": [{"bytes": K.SenderStakingKeyHash}]},
            ]},
        ]},
    ],
}

TARGET_ROW = {
    "list": [
        {"bytes": K.SwapOutTokenPolicyId},
        {"bytes": K.SwapOutTokenAssetName},
        {"int": K.TargetQuantity},
    ],
}

INPUT_ROW = {
    "list": [
        {"bytes": K.SwapInTokenPolicyId},
        {"bytes": K.SwapInTokenAssetName},
        {"int": 0},
    ],
}

_DEPOSIT_ROW = {
    "list": [
        {"bytes": ""},
        {"bytes": ""},
        {"int": CONTRACT_LOVELACE},
    ],
}

_SWAP_ORDER_TYPE = {"constructor": 0, "fields": []}


def _order_datum(target_rows):
    return {
        "constructor": 0,
        "fields": [
            _OWNER_ADDRESS,
            {"list": target_rows},
            {"list": [INPUT_ROW]},
            _SWAP_ORDER_TYPE,
            {"int": K.SlippageBps},
            {"int": K.PlatformFee},
        ],
    }


# Output is the native unit: the target quantity already includes the deposit
ORDER_DATUM_TO_NATIVE = _order_datum([TARGET_ROW])

# Output is a token: deposit comes back as its own row
ORDER_DATUM_TO_TOKEN = _order_datum([TARGET_ROW, _DEPOSIT_ROW])
