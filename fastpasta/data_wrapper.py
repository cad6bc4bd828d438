"""A chunk of CDPs: RDHs, their payloads and the memory positions they were read at."""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

R = TypeVar("R")


class CdpChunk(Generic[R]):
    """An ordered collection of (rdh, payload, mem_pos) triples."""

    def __init__(self) -> None:
        self._rdhs: list[R] = []
        self._payloads: list[bytes] = []
        self._mem_pos: list[int] = []

    def push(self, rdh: R, payload: bytes, mem_pos: int) -> None:
        """Append an RDH, its payload and its memory position."""
        self._rdhs.append(rdh)
        self._payloads.append(payload)
        self._mem_pos.append(mem_pos)

    def push_tuple(self, cdp_tuple: tuple[R, bytes, int]) -> None:
        """Append a (rdh, payload, mem_pos) tuple."""
        rdh, payload, mem_pos = cdp_tuple
        self.push(rdh, payload, mem_pos)

    def clear(self) -> None:
        """Remove all CDPs."""
        self._rdhs.clear()
        self._payloads.clear()
        self._mem_pos.clear()

    @property
    def rdhs(self) -> tuple[R, ...]:
        """The RDHs held in the chunk, in order."""
        return tuple(self._rdhs)

    @property
    def mem_positions(self) -> tuple[int, ...]:
        """The memory positions of the RDHs, in order."""
        return tuple(self._mem_pos)

    def __len__(self) -> int:
        return len(self._rdhs)

    def __iter__(self) -> Iterator[tuple[R, bytes, int]]:
        return zip(self._rdhs, self._payloads, self._mem_pos)

    def __repr__(self) -> str:
        return f"CdpChunk(len={len(self)})"