"""Configuration constants for governor-publication library."""

# Contract names as they appear in the Foundry broadcast record
GOVERNOR_CONTRACT_NAME = "UngovernableGovernor"
TOKEN_CONTRACT_NAMES = ("UngovernableERC20", "UngovernableToken")

# Start blocks used when the deployment record lacks a block number
FALLBACK_GOVERNOR_START_BLOCK = 8182743
FALLBACK_TOKEN_START_BLOCK = 8182742

# Seconds to wait before each submission to the verifier service
VERIFY_DELAY_SECONDS = 3.0

# Registry (Tally) endpoints and identity
REGISTRY_API_URL = "https://api.tally.xyz/query"
REGISTRY_APP_URL = "https://www.tally.xyz"
GOVERNOR_TYPE = "openzeppelingovernor"
ALREADY_EXISTS_MARKER = "governor already exists"
NOT_FOUND_MARKER = "not found"

# Sign-In-With-Ethereum message fields.
# SIWE_CHAIN_ID is the registry's identity chain, not the deployment chain.
SIWE_DOMAIN = "www.tally.xyz"
SIWE_STATEMENT = (
    "Sign in with Ethereum to Tally and agree to the Terms of Service at terms.tally.xyz"
)
SIWE_URI = "https://www.tally.xyz/"
SIWE_VERSION = "1"
SIWE_CHAIN_ID = 1
SIWE_SIGN_IN_TYPE = "evm"

# DAO metadata defaults
DEFAULT_DAO_NAME = "Ungovernable DAO"
DEFAULT_DAO_DESCRIPTION = "A DAO created with Ungovernable Governor."
PROBE_DAO_NAME = "Test DAO"
PROBE_DAO_DESCRIPTION = "Test DAO"
