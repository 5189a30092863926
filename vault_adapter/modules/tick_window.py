"""
Tick Array Window

Selects the ordered tick arrays a swap walks through. Whirlpool swaps take
up to three tick arrays, starting with the one holding the current tick
and moving in the direction of the trade.
"""

from typing import List, Optional

from solders.pubkey import Pubkey

from ..protocols.whirlpool import MAX_SWAP_TICK_ARRAYS, derive_tick_array
from ..protocols.whirlpool.math import start_tick_index_unchecked, is_valid_start_tick_index


def tick_array_start_indices(
    tick_current_index: int,
    tick_spacing: int,
    a_to_b: bool,
    max_count: int = MAX_SWAP_TICK_ARRAYS,
) -> List[int]:
    """
    Start indices of the tick arrays a swap traverses

    A token-B-in swap (a_to_b False) looks one tick spacing ahead of the
    current tick, since a price sitting on an array's last initializable
    tick already belongs to the next array for upward swaps.

    The walk stops early, without error, once the next start index leaves
    the valid tick range.

    Args:
        tick_current_index: Pool's current tick
        tick_spacing: Pool tick spacing
        a_to_b: True when token A is sold (price moves down)
        max_count: Maximum number of arrays

    Returns:
        Up to max_count distinct start indices, in traversal order
    """
    shift = 0 if a_to_b else tick_spacing
    step = -1 if a_to_b else 1

    starts: List[int] = []
    offset = 0
    while len(starts) < max_count:
        start = start_tick_index_unchecked(tick_current_index + shift, tick_spacing, offset)
        if not is_valid_start_tick_index(start, tick_spacing):
            break
        starts.append(start)
        offset += step
    return starts


def tick_array_window(
    tick_current_index: int,
    tick_spacing: int,
    a_to_b: bool,
    whirlpool: Pubkey,
    program_id: Optional[Pubkey] = None,
    max_count: int = MAX_SWAP_TICK_ARRAYS,
) -> List[Pubkey]:
    """
    Tick array addresses bracketing a swap

    Pure function of its inputs; the same arguments always produce the
    same sequence.

    Args:
        tick_current_index: Pool's current tick
        tick_spacing: Pool tick spacing
        a_to_b: True when token A is sold
        whirlpool: Pool address
        program_id: Whirlpool program ID (defaults to mainnet)
        max_count: Maximum number of arrays

    Returns:
        Up to max_count tick array addresses, in traversal order
    """
    starts = tick_array_start_indices(tick_current_index, tick_spacing, a_to_b, max_count)
    return [derive_tick_array(whirlpool, start, program_id) for start in starts]
