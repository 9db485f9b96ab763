from typing import Any, Dict, List, Sequence, Type

from eth_typing import HexStr
from web3 import Web3
from web3.contract import Contract


class BaseContractEncoder:
    """
    Calldata codec for an ABI, not bound to any deployed address.

    ``web3`` only provides the ABI codec, encoding never touches the network.
    """

    def __init__(self, web3: Web3, abi: List[Dict[str, Any]]):
        self.web3 = web3
        self.abi = abi
        self._codec: Type[Contract] = web3.eth.contract(abi=abi)

    @property
    def contract(self) -> Type[Contract]:
        return self._codec

    def has_function(self, fn_name: str) -> bool:
        return any(
            entry.get("type", "function") == "function" and entry.get("name") == fn_name
            for entry in self.abi
        )

    def encode_method(self, fn_name: str, args: Sequence[Any] = ()) -> HexStr:
        if not self.has_function(fn_name):
            raise ValueError(f"Function '{fn_name}' is not part of the contract ABI")
        return HexStr(self._codec.encode_abi(fn_name, args=list(args)))
