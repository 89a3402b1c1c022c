"""Merge per-source transaction lists into one canonical history."""

from collections.abc import Iterable

from onchain_history.core.models import UnifiedTransaction


def merge(*sources: Iterable[UnifiedTransaction]) -> list[UnifiedTransaction]:
    """
    Merge source outputs, drop duplicate hashes and order newest first.

    Sources are concatenated in the order given (native, fungible,
    non-fungible, then any extra source). The first record seen for a hash is
    kept and every later record with the same hash is dropped, so a native
    record always wins over token records of the same transaction and the
    token fields of the dropped record are lost.

    Parameters
    ----------
    *sources : Iterable[UnifiedTransaction]
        Per-source lists in priority order

    Returns
    -------
    list[UnifiedTransaction]
        Deduplicated records sorted by block number descending. Records in the
        same block keep their post-dedup relative order.

    """
    seen: set[str] = set()
    deduped: list[UnifiedTransaction] = []

    for source in sources:
        for tx in source:
            if tx.hash in seen:
                continue
            seen.add(tx.hash)
            deduped.append(tx)

    # Stable sort: ties keep their post-dedup order
    return sorted(deduped, key=lambda tx: tx.block_number, reverse=True)
