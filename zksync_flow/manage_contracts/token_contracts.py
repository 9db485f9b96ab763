from typing import Optional

from eth_typing import HexStr
from web3 import Web3

from zksync_flow.manage_contracts.contract_encoder_base import BaseContractEncoder
from zksync_flow.manage_contracts.utils import get_erc20_abi, get_erc721_abi


class ERC20Encoder(BaseContractEncoder):
    def __init__(self, web3: Web3, abi: Optional[list] = None):
        if abi is None:
            abi = get_erc20_abi()
        super(ERC20Encoder, self).__init__(web3, abi)


class ERC721Encoder(BaseContractEncoder):
    def __init__(self, web3: Web3, abi: Optional[list] = None):
        if abi is None:
            abi = get_erc721_abi()
        super(ERC721Encoder, self).__init__(web3, abi)


class ERC20Contract:
    """Read calls and calldata for an ERC-20 token deployed at ``contract_address``."""

    def __init__(self, web3: Web3, contract_address: HexStr):
        self.contract_address = Web3.to_checksum_address(contract_address)
        self.contract = web3.eth.contract(self.contract_address, abi=get_erc20_abi())
        self.encoder = ERC20Encoder(web3)

    def name(self) -> str:
        return self.contract.functions.name().call()

    def symbol(self) -> str:
        return self.contract.functions.symbol().call()

    def decimals(self) -> int:
        return self.contract.functions.decimals().call()

    def total_supply(self) -> int:
        return self.contract.functions.totalSupply().call()

    def balance_of(self, owner: HexStr) -> int:
        return self.contract.functions.balanceOf(owner).call()

    def allowance(self, owner: HexStr, spender: HexStr) -> int:
        return self.contract.functions.allowance(owner, spender).call()

    def encode_transfer(self, to: HexStr, amount: int) -> HexStr:
        return self.encoder.encode_method(fn_name="transfer", args=(to, amount))

    def encode_approve(self, spender: HexStr, amount: int) -> HexStr:
        return self.encoder.encode_method(fn_name="approve", args=(spender, amount))


class ERC721Contract:
    def __init__(self, web3: Web3, contract_address: HexStr):
        self.contract_address = Web3.to_checksum_address(contract_address)
        self.contract = web3.eth.contract(self.contract_address, abi=get_erc721_abi())
        self.encoder = ERC721Encoder(web3)

    def balance_of(self, owner: HexStr) -> int:
        return self.contract.functions.balanceOf(owner).call()

    def owner_of(self, token_id: int) -> HexStr:
        return self.contract.functions.ownerOf(token_id).call()

    def token_uri(self, token_id: int) -> str:
        return self.contract.functions.tokenURI(token_id).call()

    def encode_transfer_from(self, from_: HexStr, to: HexStr, token_id: int) -> HexStr:
        return self.encoder.encode_method(
            fn_name="transferFrom", args=(from_, to, token_id)
        )
