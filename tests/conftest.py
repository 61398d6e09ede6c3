"""Shared pytest fixtures for governor-publication tests."""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest
import responses

REGISTRY_URL = "https://registry.test/query"

# Well-known Hardhat/Anvil development key #0
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

GOVERNOR_ADDRESS = "0x1111111111111111111111111111111111111111"
TOKEN_ADDRESS = "0x2222222222222222222222222222222222222222"


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path


def create_tx(name, address, block=None, args=None) -> Dict[str, Any]:
    return {
        "transactionType": "CREATE",
        "contractName": name,
        "contractAddress": address,
        "arguments": args,
        "blockNumber": block,
    }


@pytest.fixture
def broadcast_record() -> Dict[str, Any]:
    """A typical governor deployment: token, governor, then a CALL."""
    return {
        "transactions": [
            create_tx("UngovernableERC20", TOKEN_ADDRESS, 99, ["Foo Token", "FOO", "1000"]),
            create_tx("UngovernableGovernor", GOVERNOR_ADDRESS, 100, [TOKEN_ADDRESS]),
            {
                "transactionType": "CALL",
                "contractName": "UngovernableERC20",
                "contractAddress": TOKEN_ADDRESS,
                "arguments": None,
                "blockNumber": 101,
            },
        ]
    }


@pytest.fixture
def record_path(tmp_path: Path, broadcast_record: Dict[str, Any]) -> Path:
    return write_json(
        tmp_path / "broadcast" / "Deploy.s.sol" / "1" / "run-latest.json", broadcast_record
    )


def artifact_data(version="0.8.24+commit.e11b9ed9", runs=200, constructor_types=None):
    abi: List[Dict[str, Any]] = [{"type": "function", "name": "name", "inputs": []}]
    if constructor_types is not None:
        abi.insert(
            0,
            {
                "type": "constructor",
                "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(constructor_types)],
            },
        )

    settings: Dict[str, Any] = {"evmVersion": "paris"}
    if runs is not None:
        settings["optimizer"] = {"enabled": True, "runs": runs}

    return {"abi": abi, "metadata": {"compiler": {"version": version}, "settings": settings}}


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    """Foundry output directory with artifacts for the governor and token."""
    out = tmp_path / "out"
    write_json(
        out / "UngovernableERC20.sol" / "UngovernableERC20.json",
        artifact_data(constructor_types=["string", "string", "uint256"]),
    )
    write_json(
        out / "UngovernableGovernor.sol" / "UngovernableGovernor.json",
        artifact_data(constructor_types=["address"]),
    )
    return out


class RegistryStub:
    """
    Dispatches registry POSTs by GraphQL operation name.

    Handlers map an operation name (e.g. "CreateDAO") to a (status, body)
    tuple or a list of them consumed in order.
    """

    def __init__(self):
        self.handlers: Dict[str, Any] = {}
        self.calls: List[Tuple[str, Dict[str, Any], Dict[str, str]]] = []

    def on(self, operation: str, status: int = 200, body: Any = None) -> None:
        self.handlers.setdefault(operation, []).append((status, body or {}))

    def operations(self) -> List[str]:
        return [op for op, _, _ in self.calls]

    def __call__(self, request) -> Tuple[int, Dict[str, str], str]:
        payload = json.loads(request.body)
        match = re.search(r"(?:query|mutation)\s+(\w+)", payload["query"])
        operation = match.group(1) if match else ""
        self.calls.append((operation, payload, dict(request.headers)))

        queued = self.handlers.get(operation)
        if not queued:
            return 500, {}, json.dumps({"errors": [{"message": f"unexpected {operation}"}]})

        status, body = queued.pop(0) if len(queued) > 1 else queued[0]
        return status, {}, json.dumps(body)


@pytest.fixture
def registry_stub():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        stub = RegistryStub()
        rsps.add_callback(
            responses.POST, REGISTRY_URL, callback=stub, content_type="application/json"
        )
        yield stub
