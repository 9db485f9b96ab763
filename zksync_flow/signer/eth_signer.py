from abc import ABC, abstractmethod
from typing import Any, Dict

from eth_account import Account
from eth_account.datastructures import SignedMessage
from eth_account.messages import SignableMessage, encode_defunct, encode_typed_data
from eth_account.signers.base import BaseAccount
from eth_typing import ChecksumAddress, HexStr
from eth_utils import keccak


def typed_data_hash(signable: SignableMessage) -> bytes:
    """keccak256 digest that EIP-712 signatures commit to."""
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


class EthSignerBase(ABC):
    @abstractmethod
    def sign_typed_data(self, typed_data: Dict[str, Any]) -> SignedMessage:
        raise NotImplementedError

    @abstractmethod
    def verify_typed_data(self, sig: HexStr, typed_data: Dict[str, Any]) -> bool:
        raise NotImplementedError


class PrivateKeyEthSigner(EthSignerBase):
    _NAME = "zkSync"
    _VERSION = "2"

    def __init__(self, creds: BaseAccount, chain_id: int):
        self.credentials = creds
        self.chain_id = chain_id
        self.default_domain = self.get_default_domain(chain_id)

    @staticmethod
    def get_default_domain(chain_id: int) -> Dict[str, Any]:
        return {
            "name": PrivateKeyEthSigner._NAME,
            "version": PrivateKeyEthSigner._VERSION,
            "chainId": chain_id,
        }

    @property
    def address(self) -> ChecksumAddress:
        return self.credentials.address

    @property
    def domain(self) -> Dict[str, Any]:
        return self.default_domain

    @staticmethod
    def typed_data_to_signable(typed_data: Dict[str, Any]) -> SignableMessage:
        return encode_typed_data(full_message=typed_data)

    def sign_typed_data(self, typed_data: Dict[str, Any]) -> SignedMessage:
        return self.credentials.sign_message(self.typed_data_to_signable(typed_data))

    def verify_typed_data(self, sig: HexStr, typed_data: Dict[str, Any]) -> bool:
        signer = Account.recover_message(
            self.typed_data_to_signable(typed_data), signature=sig
        )
        return signer.lower() == self.address.lower()

    def sign_message(self, message: str) -> SignedMessage:
        """EIP-191 personal_sign over a UTF-8 string."""
        return self.credentials.sign_message(encode_defunct(text=message))


def recover_message_signer(message: str, signature: HexStr) -> ChecksumAddress:
    return Account.recover_message(encode_defunct(text=message), signature=signature)
