from typing import List, Optional, Tuple

from tokenio import MAX_LENGTH, MAX_OFFSET

HASH_SIZE = 65536  #: Entries in the hash head table and in the chain table
CHAIN_MASK = HASH_SIZE - 1  #: Maps a position to its chain slot


def hash_at(data: bytes, pos: int) -> int:
    """Fold the 3 bytes at ``pos`` into a hash table index.

    ``(b0 << 8) ^ (b1 << 4) ^ b2`` never exceeds ``0xFFFF``: the widest
    term is ``b0 << 8 <= 0xFF00`` and XOR cannot set a bit above the
    highest bit of its operands, so the result always fits ``HASH_SIZE``.

    :param data: Input data.
    :type data: bytes
    :param pos: Position of the first byte; ``pos + 2`` must be in range.
    :type pos: int
    :returns: Hash value in ``0..0xFFFF``.
    :rtype: int
    """
    return (data[pos] << 8) ^ (data[pos + 1] << 4) ^ data[pos + 2]


class HashChainIndex:
    """Maps 3-byte prefixes to the positions where they occurred.

    Both tables store ``position + 1`` so that 0 means "absent". Entries
    are never purged; callers discard the ones that fell out of the window.

    :ivar head: Most recent position + 1 for each hash value.
    :type head: List[int]
    :ivar chain: Previous position + 1 with the same hash, per position
        modulo ``HASH_SIZE``.
    :type chain: List[int]
    """

    def __init__(self):
        self.head: List[int] = [0] * HASH_SIZE
        self.chain: List[int] = [0] * HASH_SIZE

    def lookup(self, h: int) -> int:
        return self.head[h]

    def chain_of(self, pos: int) -> int:
        return self.chain[pos & CHAIN_MASK]

    def insert(self, pos: int, h: int):
        """Record ``pos`` as the latest occurrence of hash ``h``.

        :param pos: Input position being indexed.
        :type pos: int
        :param h: Hash of the 3 bytes at ``pos``.
        :type h: int
        :returns: None
        :rtype: None
        """
        self.chain[pos & CHAIN_MASK] = self.head[h]
        self.head[h] = pos + 1


class MatchFinder:
    """Longest-match search over a hash-chained 65535-byte window.

    :ivar MIN_MATCH: Shortest match worth a 3-byte match token.
    :type MIN_MATCH: int
    :ivar data: Input being compressed.
    :type data: bytes
    :ivar index: Hash chains for the positions consumed so far.
    :type index: HashChainIndex
    :ivar max_chain: Optional cap on candidates probed per search.
    :type max_chain: Optional[int]
    """

    MIN_MATCH = 4

    def __init__(self, data: bytes, max_chain: Optional[int] = None):
        self.data = data
        self.index = HashChainIndex()
        self.max_chain = max_chain

    def find(self, pos: int) -> Tuple[int, int]:
        """Find the best ``(offset, length)`` back-reference at ``pos``.

        Candidates are visited from the most recent to the oldest and
        only a strictly longer match replaces the current best, so ties
        go to the nearest candidate. Every position the returned decision
        consumes is added to the index before returning.

        :param pos: Cursor position; ``pos + 2 < len(data)`` must hold.
        :type pos: int
        :returns: ``(offset, length)``, or ``(0, 1)`` when no match of at
            least ``MIN_MATCH`` bytes exists.
        :rtype: Tuple[int, int]
        """
        data = self.data
        end = len(data)
        limit = min(MAX_LENGTH, end - pos)
        best_off = 0
        best_len = 1

        probes = 0
        candidate = self.index.lookup(hash_at(data, pos))
        while candidate and pos - (candidate - 1) <= MAX_OFFSET:
            if self.max_chain is not None and probes >= self.max_chain:
                break
            probes += 1
            src = candidate - 1
            # Quick reject: a longer match must agree at best_len.
            if data[src + best_len] == data[pos + best_len]:
                length = 0
                while (
                    length < limit
                    and data[src + length] == data[pos + length]
                ):
                    length += 1
                if length > best_len:
                    best_off = pos - src
                    best_len = length
                    if best_len == limit:
                        break
            candidate = self.index.chain_of(src)

        if best_len < self.MIN_MATCH:
            best_off, best_len = 0, 1
        self._advance(pos, best_len)
        return best_off, best_len

    def _advance(self, pos: int, count: int):
        """Index ``count`` positions starting at ``pos``.

        Positions without a full 3-byte prefix are skipped.

        :param pos: First position to index.
        :type pos: int
        :param count: Number of positions consumed.
        :type count: int
        :returns: None
        :rtype: None
        """
        stop = min(pos + count, len(self.data) - 2)
        for idx in range(pos, stop):
            self.index.insert(idx, hash_at(self.data, idx))
