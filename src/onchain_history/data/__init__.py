"""Chain data loading."""

from onchain_history.data.loader import (
    get_all_supported_chain_ids,
    load_chain_definitions,
    load_chains_file,
)

__all__ = [
    "get_all_supported_chain_ids",
    "load_chain_definitions",
    "load_chains_file",
]
