"""Chain definition loader."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

RPC_URL_ENV_TEMPLATE = "TXHISTORY_RPC_URL_{chain_id}"


def load_chains_file(path: Path | None = None) -> dict[str, Any]:
    """
    Load raw chain definitions from chains.yaml.

    Parameters
    ----------
    path : Path | None
        Alternative YAML file. Uses the bundled chains.yaml if None.

    Returns
    -------
    dict[str, Any]
        Parsed YAML document

    """
    path = path or Path(__file__).parent / "chains.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_chain_definitions(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> list[dict[str, Any]]:
    """
    Return one definition per chain, applying per-chain RPC URL overrides.

    Parameters
    ----------
    path : Path | None
        Alternative YAML file
    environ : Mapping[str, str] | None
        Variables to read overrides from. Uses ``os.environ`` if None.

    Returns
    -------
    list[dict[str, Any]]
        Chain fields including ``chain_id``, in file order

    """
    environ = os.environ if environ is None else environ
    document = load_chains_file(path)

    definitions = []
    for chain_id, raw in document["chains"].items():
        chain_id = int(chain_id)
        fields = {"chain_id": chain_id, **raw}
        override = environ.get(RPC_URL_ENV_TEMPLATE.format(chain_id=chain_id))
        if override:
            fields["rpc_url"] = override
        definitions.append(fields)
    return definitions


def get_all_supported_chain_ids() -> list[int]:
    """Chain IDs defined in the bundled chains.yaml."""
    return [int(chain_id) for chain_id in load_chains_file()["chains"]]
