"""Configuration constants for cosmwasm-deployments library."""

from .types import DeployTarget

MANIFEST_FILENAME = "deploy.json"
NETWORK_CONFIG_FILENAME = "network.json"
ARTIFACTS_DIRNAME = "wasm/artifacts"
ARTIFACT_SUFFIX = ".wasm"

# Environment variables read from the process environment or .env
SEED_PHRASE_ENV = "DEPLOYER_SEED_PHRASE"
SIGNER_FACTORY_ENV = "DEPLOYER_SIGNER_FACTORY"

DEFAULT_TIMEOUT = 30.0  # seconds, per chain call

# Contract -> chain pairs, visited in this order on every run
DEFAULT_TARGETS = (
    DeployTarget(contract="warehouse", target="neutron"),
    DeployTarget(contract="payment", target="kujira"),
    DeployTarget(contract="nft", target="stargaze"),
)

# Required keys of each network.json entry
NETWORK_CONFIG_FIELDS = (
    "rpc_url",
    "rest_url",
    "chain_id",
    "denom",
    "addr_prefix",
)

# CosmWasm LCD routes used by the REST chain client
CODE_INFO_ROUTE = "/cosmwasm/wasm/v1/code/{code_id}"
CONTRACT_INFO_ROUTE = "/cosmwasm/wasm/v1/contract/{address}"
BALANCE_ROUTE = "/cosmos/bank/v1beta1/balances/{address}/by_denom"
ACCOUNT_ROUTE = "/cosmos/auth/v1beta1/accounts/{address}"

# GET retry policy (mutating calls are never retried)
RETRY_TOTAL = 3
RETRY_BACKOFF_FACTOR = 0.5
RETRY_STATUS_FORCELIST = (502, 503, 504)
