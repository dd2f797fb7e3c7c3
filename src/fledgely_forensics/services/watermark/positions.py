"""Keyed carrier selection for each watermark repetition.

Positions are flat cell indices (see :mod:`.cells`), one cell per payload
bit.  Repetition ``r`` draws from a :class:`SequenceGenerator` seeded with
``"{r}:{secret_key}"`` and rejects any cell already taken by this
repetition or an earlier one, so every copy of the payload lives on its own
cells.  The extractor derives exactly the same lists from the secret key
alone.
"""

from __future__ import annotations

from fledgely_forensics.services.watermark.cells import cell_count
from fledgely_forensics.services.watermark.payload_codec import payload_bit_length
from fledgely_forensics.services.watermark.sequence import SequenceGenerator


def select_all_positions(
    width: int,
    height: int,
    secret_key: str,
    repetitions: int,
) -> list[list[int]]:
    """Return one cell list per repetition, disjoint across repetitions.

    Raises ``ValueError`` if the image cannot hold ``repetitions`` copies.
    """
    bits = payload_bit_length()
    total_cells = cell_count(width, height)
    if total_cells < bits * repetitions:
        raise ValueError(
            f"{width}x{height} image cannot hold {repetitions} x {bits} cells"
        )

    taken: set[int] = set()
    result: list[list[int]] = []
    for repetition in range(repetitions):
        rng = SequenceGenerator(f"{repetition}:{secret_key}")
        chosen: list[int] = []
        while len(chosen) < bits:
            candidate = rng.next_int(0, total_cells - 1)
            if candidate in taken:
                continue
            taken.add(candidate)
            chosen.append(candidate)
        result.append(chosen)
    return result


def select_positions(
    width: int,
    height: int,
    secret_key: str,
    repetition_index: int,
) -> list[int]:
    """Cells carrying repetition *repetition_index*.

    Every earlier repetition is derived too, since its cells are excluded,
    so calling this once per repetition costs O(r^2).  Callers that need
    all repetitions should use :func:`select_all_positions`.
    """
    if repetition_index < 0:
        raise ValueError("repetition_index must be non-negative")
    return select_all_positions(width, height, secret_key, repetition_index + 1)[-1]


def repetition_mask(secret_key: str, repetition_index: int, length: int) -> list[int]:
    """Keyed whitening bits XOR-ed onto repetition *repetition_index*.

    Without it a flat, unwatermarked image reads back the same bit at every
    position, and all repetitions would agree with each other.
    """
    rng = SequenceGenerator(f"mask:{repetition_index}:{secret_key}")
    return [rng.next_int(0, 1) for _ in range(length)]
