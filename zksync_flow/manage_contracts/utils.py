import importlib.resources as pkg_resources
import json
from typing import Any, Dict, List

from zksync_flow.manage_contracts import contract_abi

_abi_cache: Dict[str, List[Dict[str, Any]]] = {}


def _load_abi(file_name: str) -> List[Dict[str, Any]]:
    if file_name not in _abi_cache:
        resource = pkg_resources.files(contract_abi).joinpath(file_name)
        with resource.open(mode="r") as json_file:
            data = json.load(json_file)
            _abi_cache[file_name] = data["abi"]
    return _abi_cache[file_name]


def get_erc20_abi():
    return _load_abi("IERC20.json")


def get_erc721_abi():
    return _load_abi("IERC721.json")


def paymaster_flow_abi_default():
    return _load_abi("IPaymasterFlow.json")


def nonce_holder_abi_default():
    return _load_abi("INonceHolder.json")


def l2_shared_bridge_abi_default():
    return _load_abi("IL2SharedBridge.json")
