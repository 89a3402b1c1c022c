"""Data models for unified transactions and chain configuration."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class TransactionType(StrEnum):
    """Kind of movement a transaction record represents."""

    NATIVE = "native"
    FUNGIBLE_TRANSFER = "fungible-transfer"
    NON_FUNGIBLE_TRANSFER = "non-fungible-transfer"
    MULTI_TOKEN_TRANSFER = "multi-token-transfer"
    CONTRACT_CALL = "contract-call"
    INTERNAL = "internal"


class TransactionStatus(StrEnum):
    """Execution status of a transaction."""

    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


class UnifiedTransaction(BaseModel):
    """
    One entry of a wallet's transaction history, whatever source produced it.

    Instances are immutable: each fetcher builds one per raw transaction or
    event and nothing mutates it afterwards.

    Attributes
    ----------
    hash : str
        Transaction hash, the deduplication key
    type : TransactionType
        Kind of movement
    status : TransactionStatus
        Execution status
    from_address : str
        Sender
    to_address : str | None
        Recipient, None for contract creation
    value : int
        Native amount moved by the transaction itself, in base units
    token_address : str | None
        Token contract for transfer variants
    token_symbol : str | None
        Token symbol when it could be resolved
    token_decimals : int | None
        Token decimals when it could be resolved
    token_amount : int | None
        Fungible amount in base units
    token_id : int | None
        Non-fungible token identifier
    block_number : int
        Block containing the transaction
    timestamp : int
        Block time in seconds since epoch
    gas_used : int
        Gas consumed (0 when no receipt was fetched)
    gas_price : int
        Effective gas price in base units
    nonce : int
        Sender nonce
    input : str
        Calldata
    method_selector : str | None
        First 4 bytes of ``input``
    error : str | None
        Failure detail when known

    """

    model_config = ConfigDict(frozen=True)

    hash: str
    type: TransactionType
    status: TransactionStatus
    from_address: str
    to_address: str | None = None
    value: int = Field(default=0, ge=0)
    token_address: str | None = None
    token_symbol: str | None = None
    token_decimals: int | None = Field(default=None, ge=0)
    token_amount: int | None = Field(default=None, ge=0)
    token_id: int | None = Field(default=None, ge=0)
    block_number: int = Field(ge=0)
    timestamp: int = Field(ge=0)
    gas_used: int = Field(default=0, ge=0)
    gas_price: int = Field(default=0, ge=0)
    nonce: int = Field(default=0, ge=0)
    input: str = "0x"
    method_selector: str | None = None
    error: str | None = None

    @field_serializer("value", "token_amount", "token_id", "gas_used", "gas_price", when_used="json")
    def _serialize_big_int(self, value: int | None) -> str | None:
        # Exact decimal strings; JSON numbers are not safe above 2**53
        return None if value is None else str(value)

    @property
    def is_token_transfer(self) -> bool:
        """Whether the record describes a token movement."""
        return self.type in (
            TransactionType.FUNGIBLE_TRANSFER,
            TransactionType.NON_FUNGIBLE_TRANSFER,
            TransactionType.MULTI_TOKEN_TRANSFER,
        )


class ChainConfig(BaseModel):
    """
    Connection parameters for one supported chain.

    Attributes
    ----------
    chain_id : int
        EIP-155 chain ID
    name : str
        Display name
    rpc_url : str
        JSON-RPC endpoint
    native_symbol : str
        Native currency symbol
    native_decimals : int
        Native currency decimals
    explorer_url : str
        Block explorer base URL (no trailing slash)
    ape_network : str | None
        Ape network choice used by the 'ape' transport
    testnet : bool
        Whether the chain is a test network

    """

    model_config = ConfigDict(frozen=True)

    chain_id: int = Field(gt=0)
    name: str
    rpc_url: str
    native_symbol: str = "ETH"
    native_decimals: int = 18
    explorer_url: str = ""
    ape_network: str | None = None
    testnet: bool = False

    def tx_url(self, tx_hash: str) -> str:
        """Explorer link for a transaction, empty without an explorer."""
        if not self.explorer_url:
            return ""
        return f"{self.explorer_url}/tx/{tx_hash}"

    def address_url(self, address: str) -> str:
        """Explorer link for an address, empty without an explorer."""
        if not self.explorer_url:
            return ""
        return f"{self.explorer_url}/address/{address}"
