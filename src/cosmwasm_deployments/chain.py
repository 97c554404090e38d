"""Chain client interface and CosmWasm REST implementation."""

import logging
from typing import Any, Callable, Dict, Optional, Protocol, Type, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from .constants import (
    ACCOUNT_ROUTE,
    BALANCE_ROUTE,
    CODE_INFO_ROUTE,
    CONTRACT_INFO_ROUTE,
    DEFAULT_TIMEOUT,
    RETRY_BACKOFF_FACTOR,
    RETRY_STATUS_FORCELIST,
    RETRY_TOTAL,
)
from .exceptions import (
    AccountNotFoundError,
    ChainRpcError,
    ChainTimeoutError,
    CodeNotFoundError,
    ContractNotFoundError,
    DeploymentError,
    UploadError,
)
from .types import CodeMetadata, ContractMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")

# gRPC status code NOT_FOUND, returned in the body of failed LCD queries
_GRPC_NOT_FOUND = 5


class ChainClient(Protocol):
    """Operations the orchestrator needs from one target chain connection."""

    @property
    def address(self) -> str:
        """Address of the signing account (used as contract admin)."""
        ...

    def upload(self, wasm: bytes) -> int: ...

    def get_code_metadata(self, code_id: int) -> CodeMetadata: ...

    def instantiate(
        self, code_id: int, init_msg: Dict[str, Any], label: str, admin: str
    ) -> str: ...

    def migrate(
        self, contract_address: str, new_code_id: int, migrate_msg: Dict[str, Any]
    ) -> None: ...

    def get_contract_metadata(self, contract_address: str) -> ContractMetadata: ...

    def get_balance(self, address: str, denom: str) -> int: ...

    def account_exists(self, address: str) -> bool: ...


class Signer(Protocol):
    """
    Transaction signing and broadcasting for one chain.

    Key handling and wire encoding live behind this interface; see the
    ``--signer-factory`` CLI option for how an implementation is plugged in.
    Each call must give up after ``timeout`` seconds and raise TimeoutError.
    """

    @property
    def address(self) -> str: ...

    def upload(self, wasm: bytes, timeout: float) -> int: ...

    def instantiate(
        self,
        code_id: int,
        init_msg: Dict[str, Any],
        label: str,
        admin: str,
        timeout: float,
    ) -> str: ...

    def migrate(
        self,
        contract_address: str,
        new_code_id: int,
        migrate_msg: Dict[str, Any],
        timeout: float,
    ) -> None: ...


def create_session() -> requests.Session:
    """
    Create an HTTP session that retries idempotent GETs with backoff.

    Only GET is retried, on connection errors and 502/503/504. Read timeouts
    are raised straight away so each call keeps to the caller's timeout.
    """
    retry = Retry(
        total=RETRY_TOTAL,
        backoff_factor=RETRY_BACKOFF_FACTOR,
        status_forcelist=RETRY_STATUS_FORCELIST,
        read=False,
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
    )
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class RestChainClient:
    """
    Chain client backed by a CosmWasm LCD REST endpoint.

    Queries go straight to the REST endpoint. Upload, instantiate and migrate
    are delegated to a Signer.
    """

    def __init__(
        self,
        rest_url: str,
        signer: Signer,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            rest_url: LCD base URL, e.g. "https://rest-falcron.pion-1.ntrn.tech"
            signer: Signs and broadcasts transactions for this chain
            timeout: Seconds allowed for each chain call
            session: HTTP session (defaults to one from create_session())
        """
        self.rest_url = rest_url.rstrip("/")
        self.signer = signer
        self.timeout = timeout
        self.session = session if session is not None else create_session()

    @property
    def address(self) -> str:
        return self.signer.address

    def _get(
        self,
        route: str,
        params: Optional[Dict[str, str]] = None,
        not_found: Optional[Type[ChainRpcError]] = None,
    ) -> Dict[str, Any]:
        """
        GET a LCD route and return the decoded JSON body.

        Raises:
            ChainTimeoutError: If the request times out
            ChainRpcError: On network errors, non-200 status or a non-JSON body
            not_found: If given, raised when the chain reports the object missing
        """
        url = f"{self.rest_url}{route}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise ChainTimeoutError(f"Timed out after {self.timeout}s: GET {url}") from e
        except requests.RequestException as e:
            raise ChainRpcError(f"Network error during GET {url}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code != 200:
            is_missing = response.status_code == 404 or (
                isinstance(body, dict) and body.get("code") == _GRPC_NOT_FOUND
            )
            message = body.get("message") if isinstance(body, dict) else response.text
            if not_found is not None and is_missing:
                raise not_found(f"Not found: GET {url}: {message}")
            raise ChainRpcError(
                f"GET {url} failed with status {response.status_code}: {message}"
            )

        if not isinstance(body, dict):
            raise ChainRpcError(f"GET {url} returned a non-JSON body")
        return body

    def _signed(
        self, description: str, error_cls: Type[ChainRpcError], call: Callable[[], T]
    ) -> T:
        """Run a signer call, mapping its failures onto chain error types."""
        try:
            return call()
        except DeploymentError:
            raise
        except TimeoutError as e:
            raise ChainTimeoutError(f"{description} timed out after {self.timeout}s") from e
        except Exception as e:
            raise error_cls(f"{description} failed: {e}") from e

    def upload(self, wasm: bytes) -> int:
        return self._signed(
            "Upload", UploadError, lambda: self.signer.upload(wasm, timeout=self.timeout)
        )

    def get_code_metadata(self, code_id: int) -> CodeMetadata:
        """
        Query code info by id.

        Raises:
            CodeNotFoundError: If no code is stored under code_id
            ChainRpcError: On any other failure
        """
        body = self._get(CODE_INFO_ROUTE.format(code_id=code_id), not_found=CodeNotFoundError)
        try:
            info = body["code_info"]
            return CodeMetadata(
                code_id=int(info["code_id"]),
                creator=info.get("creator"),
                data_hash=info.get("data_hash"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ChainRpcError(f"Malformed code info for code id {code_id}: {body}") from e

    def instantiate(
        self, code_id: int, init_msg: Dict[str, Any], label: str, admin: str
    ) -> str:
        return self._signed(
            f"Instantiate code {code_id}",
            ChainRpcError,
            lambda: self.signer.instantiate(
                code_id, init_msg, label, admin, timeout=self.timeout
            ),
        )

    def migrate(
        self, contract_address: str, new_code_id: int, migrate_msg: Dict[str, Any]
    ) -> None:
        self._signed(
            f"Migrate {contract_address} to code {new_code_id}",
            ChainRpcError,
            lambda: self.signer.migrate(
                contract_address, new_code_id, migrate_msg, timeout=self.timeout
            ),
        )

    def get_contract_metadata(self, contract_address: str) -> ContractMetadata:
        """
        Query contract info by address.

        Raises:
            ContractNotFoundError: If no contract exists at the address
            ChainRpcError: On any other failure
        """
        body = self._get(
            CONTRACT_INFO_ROUTE.format(address=contract_address),
            not_found=ContractNotFoundError,
        )
        info = body.get("contract_info")
        if not isinstance(info, dict):
            raise ChainRpcError(f"Malformed contract info for {contract_address}: {body}")

        try:
            code_id = int(info["code_id"]) if info.get("code_id") is not None else None
        except (TypeError, ValueError) as e:
            raise ChainRpcError(f"Malformed contract info for {contract_address}: {body}") from e

        return ContractMetadata(
            address=body.get("address", contract_address),
            code_id=code_id,
            admin=info.get("admin") or None,
            label=info.get("label") or None,
            # LCD returns "" when the contract has no IBC entry points
            ibc_port=info.get("ibc_port_id") or None,
        )

    def get_balance(self, address: str, denom: str) -> int:
        body = self._get(BALANCE_ROUTE.format(address=address), params={"denom": denom})
        balance = body.get("balance") or {}
        try:
            return int(balance.get("amount", 0))
        except (TypeError, ValueError) as e:
            raise ChainRpcError(f"Malformed balance for {address}: {body}") from e

    def account_exists(self, address: str) -> bool:
        try:
            self._get(ACCOUNT_ROUTE.format(address=address), not_found=AccountNotFoundError)
        except AccountNotFoundError:
            return False
        return True
