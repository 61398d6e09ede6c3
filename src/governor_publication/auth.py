"""Sign-In-With-Ethereum authentication against the governance registry."""

import logging
import threading
from enum import Enum
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct

from .constants import (
    SIWE_CHAIN_ID,
    SIWE_DOMAIN,
    SIWE_SIGN_IN_TYPE,
    SIWE_STATEMENT,
    SIWE_URI,
    SIWE_VERSION,
)
from .exceptions import (
    AuthConfigMissingError,
    LoginFailedError,
    NonceFetchFailedError,
    RegistryTransportError,
)
from .registry import RegistryClient
from .types import NonceChallenge, SiweCredential

logger = logging.getLogger(__name__)

NONCE_QUERY = """
query Nonce {
  nonce {
    expirationTime
    issuedAt
    nonce
    nonceToken
  }
}
"""

LOGIN_MUTATION = """
mutation Login($message: String!, $signature: String!, $signInType: SignInType!) {
  login(message: $message, signature: $signature, signInType: $signInType)
}
"""


class AuthState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


def build_siwe_message(
    address: str, nonce: str, issued_at: str, expiration_time: str
) -> str:
    """
    Build the EIP-4361 sign-in message the registry expects.

    The chain id embedded here is the registry's identity chain (always 1),
    independent of the chain the contracts were deployed to.
    """
    return (
        f"{SIWE_DOMAIN} wants you to sign in with your Ethereum account:\n"
        f"{address}\n"
        "\n"
        f"{SIWE_STATEMENT}\n"
        "\n"
        f"URI: {SIWE_URI}\n"
        f"Version: {SIWE_VERSION}\n"
        f"Chain ID: {SIWE_CHAIN_ID}\n"
        f"Nonce: {nonce}\n"
        f"Issued At: {issued_at}\n"
        f"Expiration Time: {expiration_time}"
    )


def sign_message(private_key: str, message: str) -> str:
    """Sign an EIP-191 personal message; returns a 0x-prefixed hex signature."""
    signed = Account.sign_message(encode_defunct(text=message), private_key=private_key)
    signature = signed.signature.hex()
    return signature if signature.startswith("0x") else f"0x{signature}"


class SiweAuthenticator:
    """
    Credential context for registry calls.

    Holds the bearer token for the lifetime of the object. A token supplied
    up front is trusted as-is and no sign-in exchange is made.
    """

    def __init__(
        self,
        registry: RegistryClient,
        private_key: Optional[str] = None,
        token: Optional[str] = None,
    ):
        self.registry = registry
        self._private_key = private_key
        self._credential: Optional[SiweCredential] = SiweCredential(token) if token else None
        self._lock = threading.Lock()

    @property
    def state(self) -> AuthState:
        if self._credential is None:
            return AuthState.UNAUTHENTICATED
        return AuthState.AUTHENTICATED

    def get_token(self) -> str:
        """Return the cached bearer token, signing in first if needed."""
        if self._credential is not None:
            return self._credential.token

        with self._lock:
            if self._credential is None:
                self._credential = self.authenticate()
        return self._credential.token

    def address(self) -> str:
        if not self._private_key:
            raise AuthConfigMissingError(
                "PRIVATE_KEY is not set; a signing key is required for registry sign-in"
            )
        return Account.from_key(self._private_key).address

    def fetch_nonce(self) -> NonceChallenge:
        """
        Request a sign-in nonce challenge.

        Raises:
            NonceFetchFailedError: On transport failure or a response without a nonce
        """
        try:
            response = self.registry.execute(NONCE_QUERY)
        except RegistryTransportError as e:
            raise NonceFetchFailedError(f"Error getting nonce from registry: {e}") from e

        nonce = (response.data or {}).get("nonce") if response.ok else None
        if response.errors or not nonce:
            raise NonceFetchFailedError(
                f"Failed to get nonce from registry (status {response.status_code}): "
                f"{response.errors_text() or 'no nonce in response'}"
            )

        try:
            return NonceChallenge(
                nonce=nonce["nonce"],
                nonce_token=nonce["nonceToken"],
                issued_at=nonce["issuedAt"],
                expiration_time=nonce["expirationTime"],
            )
        except (KeyError, TypeError) as e:
            raise NonceFetchFailedError(f"Incomplete nonce challenge: {nonce!r}") from e

    def authenticate(self) -> SiweCredential:
        """
        Perform the nonce, sign, login exchange.

        Raises:
            AuthConfigMissingError: If no signing key is configured
            NonceFetchFailedError: If the nonce challenge fails
            LoginFailedError: If the login exchange fails
        """
        address = self.address()
        challenge = self.fetch_nonce()

        message = build_siwe_message(
            address, challenge.nonce, challenge.issued_at, challenge.expiration_time
        )
        signature = sign_message(self._private_key, message)

        variables = {
            "message": message,
            "signature": signature,
            "signInType": SIWE_SIGN_IN_TYPE,
        }
        try:
            response = self.registry.execute(
                LOGIN_MUTATION, variables, headers={"nonce": challenge.nonce_token}
            )
        except RegistryTransportError as e:
            raise LoginFailedError(f"Error logging in to registry: {e}") from e

        token = (response.data or {}).get("login") if response.ok else None
        if response.errors or not token:
            raise LoginFailedError(
                f"Failed to login to registry (status {response.status_code}): "
                f"{response.errors_text() or 'no token in response'}"
            )

        logger.info("Signed in to registry as %s", address)
        return SiweCredential(token=token)
