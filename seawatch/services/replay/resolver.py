from seawatch.shared.core.models import BlockRange


def safe_head(chain_head: int, confirmations: int) -> int:
    """
    Highest block eligible for scanning.

    Withholds the most recent `confirmations - 1` blocks, never below 0.
    """
    if confirmations <= 1:
        return chain_head
    return max(0, chain_head - (confirmations - 1))


def effective_start(last_synced: int, configured_start: int) -> int:
    """Block just before the first one the next pass should scan"""
    if last_synced > 0:
        return last_synced
    if configured_start > 0:
        return configured_start - 1
    return 0


def resolve_range(last_synced: int | None,
                  configured_start: int,
                  chain_head: int,
                  confirmations: int) -> BlockRange | None:
    """
    Compute the next block range to scan.

    Args:
        last_synced: Stored checkpoint, None or 0 when nothing was synced yet
        configured_start: Operator supplied first block
        chain_head: Current chain tip height
        confirmations: Required confirmation depth

    Returns:
        Optional[BlockRange]: Inclusive range to scan, None when there is nothing to do.
    """
    start = effective_start(last_synced or 0, configured_start)
    head = safe_head(chain_head, confirmations)

    if start >= head:
        return None

    return BlockRange(start=start + 1, end=head)
