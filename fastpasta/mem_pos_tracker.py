"""Tracking of the byte position of RDHs in the input stream."""

from __future__ import annotations

RDH_CRU_SIZE_BYTES = 64


class MemPosTracker:
    """Tracks the memory position from the RDH offsets passed to :meth:`next`."""

    def __init__(self) -> None:
        self.memory_address_bytes: int = 0
        self._offset_next: int = 0
        self._rdh_size = RDH_CRU_SIZE_BYTES

    @property
    def offset_next(self) -> int:
        """The relative offset most recently returned by :meth:`next`."""
        return self._offset_next

    def next(self, rdh_offset: int) -> int:
        """Advance by an RDH's offset to next and return the bytes to skip after the RDH.

        Raises ValueError if the offset is smaller than the size of an RDH.
        """
        if rdh_offset < self._rdh_size:
            raise ValueError(
                f"RDH offset is smaller than RDH size: {rdh_offset} < {self._rdh_size}"
            )
        self._offset_next = rdh_offset - self._rdh_size
        self.memory_address_bytes += rdh_offset
        return self._offset_next

    def __repr__(self) -> str:
        return (
            f"MemPosTracker(memory_address_bytes={self.memory_address_bytes:#x}, "
            f"offset_next={self._offset_next})"
        )