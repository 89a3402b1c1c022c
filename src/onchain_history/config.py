"""Process-wide scan configuration loaded from environment variables."""

import os
from collections.abc import Mapping
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

ENV_PREFIX = "TXHISTORY_"

# field name -> environment variable (without prefix)
ENV_FIELDS = {
    "enabled": "ENABLED",
    "max_block_range": "MAX_BLOCK_RANGE",
    "page_size": "PAGE_SIZE",
    "cache_enabled": "CACHE_ENABLED",
    "cache_ttl_seconds": "CACHE_TTL",
    "include_native_internal": "INCLUDE_NATIVE",
    "include_fungible_transfers": "INCLUDE_TOKENS",
    "include_non_fungible_transfers": "INCLUDE_NFTS",
    "include_multi_token_transfers": "INCLUDE_MULTI_TOKEN",
    "nft_value_threshold": "NFT_THRESHOLD",
    "resolve_token_metadata": "RESOLVE_TOKEN_METADATA",
    "rpc_timeout": "RPC_TIMEOUT",
    "rpc_max_retries": "RPC_MAX_RETRIES",
    "rpc_transport": "RPC_TRANSPORT",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised when an environment variable holds an invalid value."""


class ScanConfig(BaseModel):
    """
    Tunable scan parameters.

    Read once at startup and never changed during a scan.

    Attributes
    ----------
    enabled : bool
        Feature switch for the whole history scanner
    max_block_range : int
        Block span scanned when no explicit ``from_block`` is given
    page_size : int
        Blocks fetched concurrently per native-scan batch
    cache_enabled : bool
        Whether reconciled results are cached
    cache_ttl_seconds : int
        Freshness window of a cache entry
    include_native_internal : bool
        Run the native-transfer source
    include_fungible_transfers : bool
        Run the fungible-token transfer source
    include_non_fungible_transfers : bool
        Run the non-fungible-token transfer source
    include_multi_token_transfers : bool
        Run the ERC-1155 TransferSingle source
    nft_value_threshold : int
        Transfer values below this are classified as token IDs
    resolve_token_metadata : bool
        Look up token symbol/decimals with ``eth_call``
    rpc_timeout : float
        HTTP timeout per RPC request in seconds
    rpc_max_retries : int
        Transport-level retries per RPC request
    rpc_transport : str
        'http' for the built-in JSON-RPC client, 'ape' for Ape networks

    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    max_block_range: int = Field(default=1000, ge=0)
    page_size: int = Field(default=100, ge=1)
    cache_enabled: bool = True
    cache_ttl_seconds: int = Field(default=300, ge=0)
    include_native_internal: bool = True
    include_fungible_transfers: bool = True
    include_non_fungible_transfers: bool = True
    include_multi_token_transfers: bool = False
    nft_value_threshold: int = Field(default=1_000_000, ge=0)
    resolve_token_metadata: bool = True
    rpc_timeout: float = Field(default=30.0, gt=0)
    rpc_max_retries: int = Field(default=0, ge=0)
    rpc_transport: Literal["http", "ape"] = "http"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ScanConfig":
        """
        Build a config from ``TXHISTORY_*`` variables.

        Parameters
        ----------
        environ : Mapping[str, str] | None
            Variables to read. Uses ``os.environ`` if None.

        Returns
        -------
        ScanConfig
            Parsed configuration; unset variables keep their defaults

        Raises
        ------
        ConfigError
            If a variable cannot be parsed

        """
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {}

        for field_name, suffix in ENV_FIELDS.items():
            raw = environ.get(ENV_PREFIX + suffix)
            if raw is None or raw.strip() == "":
                continue
            raw = raw.strip()
            if cls.model_fields[field_name].annotation is bool:
                values[field_name] = _parse_bool(ENV_PREFIX + suffix, raw)
            else:
                values[field_name] = raw.lower() if field_name == "rpc_transport" else raw

        try:
            return cls(**values)
        except ValidationError as e:
            msg = f"Invalid {ENV_PREFIX}* configuration: {e}"
            raise ConfigError(msg) from e


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    msg = f"{name} must be a boolean flag, got {raw!r}"
    raise ConfigError(msg)


@lru_cache(maxsize=1)
def get_scan_config() -> ScanConfig:
    """Return the process-wide configuration, loading it on first use."""
    return ScanConfig.from_env()
