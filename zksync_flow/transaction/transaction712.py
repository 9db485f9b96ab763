from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import rlp
from eth_account.datastructures import SignedMessage
from eth_typing import ChecksumAddress, HexStr
from eth_utils import remove_0x_prefix
from rlp.sedes import CountableList, big_endian_int, binary
from web3.types import Nonce

from zksync_flow.core.utils import encode_address, int_to_bytes, to_bytes
from zksync_flow.module.request_types import EIP712Meta, TransactionType

EIP712_DOMAIN_FIELDS = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
]

EIP712_TRANSACTION_FIELDS = [
    {"name": "txType", "type": "uint256"},
    {"name": "from", "type": "uint256"},
    {"name": "to", "type": "uint256"},
    {"name": "gasLimit", "type": "uint256"},
    {"name": "gasPerPubdataByteLimit", "type": "uint256"},
    {"name": "maxFeePerGas", "type": "uint256"},
    {"name": "maxPriorityFeePerGas", "type": "uint256"},
    {"name": "paymaster", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "value", "type": "uint256"},
    {"name": "data", "type": "bytes"},
    {"name": "factoryDeps", "type": "bytes32[]"},
    {"name": "paymasterInput", "type": "bytes"},
]


class _RlpTransaction712(rlp.Serializable):
    fields = [
        ("nonce", big_endian_int),
        ("maxPriorityFeePerGas", big_endian_int),
        ("maxFeePerGas", big_endian_int),
        ("gasLimit", big_endian_int),
        ("to", binary),
        ("value", big_endian_int),
        ("data", binary),
        ("chainId", big_endian_int),
        ("r", binary),
        ("s", binary),
        ("chainId2", big_endian_int),
        ("sender", binary),
        ("gasPerPubdata", big_endian_int),
        ("factoryDeps", CountableList(binary)),
        ("signature", binary),
        ("paymasterParams", CountableList(binary)),
    ]


@dataclass
class Transaction712:
    EIP_712_TX_TYPE = TransactionType.EIP_712_TX_TYPE.value

    chain_id: int
    nonce: Nonce
    gas_limit: int
    to: Union[ChecksumAddress, str]
    value: int
    data: Union[bytes, HexStr]
    maxPriorityFeePerGas: int
    maxFeePerGas: int
    from_: Union[bytes, HexStr]
    meta: EIP712Meta

    def _paymaster_fields(self) -> List[bytes]:
        paymaster_params = self.meta.paymaster_params
        if paymaster_params is None or paymaster_params.paymaster is None:
            return []
        return [
            bytes.fromhex(remove_0x_prefix(paymaster_params.paymaster)),
            paymaster_params.paymaster_input,
        ]

    def encode(self, signature: Optional[SignedMessage] = None) -> bytes:
        """Serializes the transaction as ``0x71 || rlp(fields)``, ready for eth_sendRawTransaction."""
        custom_signature = self.meta.custom_signature
        if custom_signature is not None:
            rlp_signature = custom_signature
        elif signature is not None:
            rlp_signature = bytes(signature.signature)
        else:
            raise RuntimeError("Custom signature and signature can't be None both")

        representation = _RlpTransaction712(
            nonce=self.nonce,
            maxPriorityFeePerGas=self.maxPriorityFeePerGas,
            maxFeePerGas=self.maxFeePerGas,
            gasLimit=self.gas_limit,
            to=encode_address(self.to),
            value=self.value,
            data=to_bytes(self.data),
            chainId=self.chain_id,
            r=b"",
            s=b"",
            chainId2=self.chain_id,
            sender=encode_address(self.from_),
            gasPerPubdata=self.meta.gas_per_pub_data,
            factoryDeps=[],
            signature=rlp_signature,
            paymasterParams=self._paymaster_fields(),
        )
        return int_to_bytes(self.EIP_712_TX_TYPE) + rlp.encode(representation)

    def to_eip712_message(self) -> Dict[str, Any]:
        paymaster = 0
        paymaster_input = b""
        paymaster_params = self.meta.paymaster_params
        if paymaster_params is not None:
            if paymaster_params.paymaster is not None:
                paymaster = int(paymaster_params.paymaster, 16)
            if paymaster_params.paymaster_input is not None:
                paymaster_input = paymaster_params.paymaster_input

        return {
            "txType": self.EIP_712_TX_TYPE,
            "from": int(self.from_, 16),
            "to": int(self.to, 16),
            "gasLimit": self.gas_limit,
            "gasPerPubdataByteLimit": self.meta.gas_per_pub_data,
            "maxFeePerGas": self.maxFeePerGas,
            "maxPriorityFeePerGas": self.maxPriorityFeePerGas,
            "paymaster": paymaster,
            "nonce": self.nonce,
            "value": self.value,
            "data": to_bytes(self.data),
            "factoryDeps": [],
            "paymasterInput": paymaster_input,
        }

    def to_typed_data(self, domain: Dict[str, Any]) -> Dict[str, Any]:
        """Full EIP-712 document as accepted by ``eth_account.messages.encode_typed_data``."""
        return {
            "types": {
                "EIP712Domain": EIP712_DOMAIN_FIELDS,
                "Transaction": EIP712_TRANSACTION_FIELDS,
            },
            "primaryType": "Transaction",
            "domain": domain,
            "message": self.to_eip712_message(),
        }

    @staticmethod
    def encode_type() -> str:
        members = ",".join(f"{f['type']} {f['name']}" for f in EIP712_TRANSACTION_FIELDS)
        return f"Transaction({members})"
