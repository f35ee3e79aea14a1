from typing import Callable, Optional

from errors import MalformedStreamError
from matchfinder import MatchFinder
from tokenio import Buffer, MAX_LENGTH, TokenReader, TokenWriter


class LZ77Compressor:
    """LZ77 codec with a 64 KiB hash-chained search window.

    The output is a raw stream of tokens::

        0xxxxxxx                   : literal run of x bytes, bytes follow
        1xxxxxxx yyyyyyyy yyyyyyyy : copy x bytes from y bytes back

    :ivar MIN_MATCH: Shortest match emitted as a match token.
    :type MIN_MATCH: int
    :ivar MAX_LENGTH: Longest literal run or match per token.
    :type MAX_LENGTH: int
    :ivar WINDOW_SIZE: Sliding window size (maximum backward distance).
    :type WINDOW_SIZE: int
    :ivar max_chain: Optional cap on hash chain candidates per search.
    :type max_chain: Optional[int]
    """

    MIN_MATCH = MatchFinder.MIN_MATCH
    MAX_LENGTH = MAX_LENGTH
    WINDOW_SIZE = 65535

    def __init__(self, max_chain: Optional[int] = None):
        """Configure the compressor.

        :param max_chain: Maximum number of candidates probed per search,
            or ``None`` to walk the whole window.
        :type max_chain: Optional[int]
        :returns: None
        :rtype: None
        """
        if max_chain is not None and max_chain < 1:
            raise ValueError(f"max_chain must be positive, got {max_chain}")
        self.max_chain = max_chain

    @classmethod
    def max_compressed_size(cls, size: int) -> int:
        """Worst-case compressed size for ``size`` input bytes.

        Each literal run adds one header byte per ``MAX_LENGTH`` bytes and a
        match token is never longer than the bytes it replaces.

        :param size: Uncompressed length.
        :type size: int
        :returns: Upper bound on the compressed length.
        :rtype: int
        """
        return size + -(-size // cls.MAX_LENGTH)

    def compress(
        self,
        data: bytes,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Compress ``data`` into a new token stream.

        :param data: Uncompressed input bytes.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(pos, total)``
            invoked after every token with the number of input bytes
            consumed and the total input size.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Token stream.
        :rtype: bytes
        """
        writer = TokenWriter()
        self._encode(bytes(data), writer, on_progress)
        return writer.flush()

    def compress_into(
        self,
        data: bytes,
        out: Buffer,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> int:
        """Compress ``data`` into the caller-provided buffer ``out``.

        A buffer of ``max_compressed_size(len(data))`` bytes (or the
        customary ``2 * len(data)``) is always large enough.

        :param data: Uncompressed input bytes.
        :type data: bytes
        :param out: Writable destination buffer.
        :type out: bytearray | memoryview
        :param on_progress: Optional callback ``on_progress(pos, total)``.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Number of bytes written to ``out``.
        :rtype: int
        :raises BufferTooSmallError: If ``out`` cannot hold the stream.
        """
        writer = TokenWriter(out)
        self._encode(bytes(data), writer, on_progress)
        return writer.pos

    def _encode(
        self,
        data: bytes,
        writer: TokenWriter,
        on_progress: Optional[Callable[[int, int], None]],
    ):
        """Scan ``data`` left to right and emit tokens to ``writer``.

        :param data: Uncompressed input bytes.
        :type data: bytes
        :param writer: Token sink.
        :type writer: TokenWriter
        :param on_progress: Optional progress callback.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: None
        :rtype: None
        """
        finder = MatchFinder(data, self.max_chain)
        total = len(data)
        pos = 0
        literals = 0

        while pos < total:
            offset, length = 0, 1
            if pos + 2 < total:
                offset, length = finder.find(pos)

            if offset == 0:
                literals += length
                pos += length

            if literals and (
                offset or pos == total or literals == self.MAX_LENGTH
            ):
                writer.write_literals(data, pos - literals, pos)
                literals = 0

            if offset:
                writer.write_match(length, offset)
                pos += length

            if on_progress is not None:
                on_progress(pos, total)

    @staticmethod
    def _replay(data: bytes, out: Optional[Buffer]) -> int:
        """Walk the token stream, writing into ``out`` when it is given.

        With ``out`` set to ``None`` only the decoded length is computed;
        the stream is validated identically either way.

        :param data: Token stream.
        :type data: bytes
        :param out: Destination buffer, or ``None`` to probe the length.
        :type out: Optional[bytearray | memoryview]
        :returns: Number of decoded bytes.
        :rtype: int
        :raises MalformedStreamError: If the stream is malformed or ``out``
            is too small.
        """
        out_idx = 0
        reader = TokenReader(data)
        for token in reader:
            end = out_idx + token.length
            if token.offset > out_idx:
                raise MalformedStreamError(
                    f"Match offset {token.offset} exceeds the "
                    f"{out_idx} bytes decoded so far"
                )
            if out is not None:
                if end > len(out):
                    raise MalformedStreamError(
                        f"Output buffer of {len(out)} bytes is too small "
                        f"for {end} decoded bytes"
                    )
                if token.is_match:
                    # Byte by byte: overlapping copies read bytes written
                    # earlier in the same match.
                    src = out_idx - token.offset
                    while out_idx < end:
                        out[out_idx] = out[src]
                        out_idx += 1
                        src += 1
                else:
                    out[out_idx:end] = token.literals
            out_idx = end
        return out_idx

    @classmethod
    def decompressed_size(cls, data: bytes) -> int:
        """Return the length ``data`` decodes to without decoding it.

        :param data: Token stream.
        :type data: bytes
        :returns: Decoded length.
        :rtype: int
        :raises MalformedStreamError: If the stream is malformed.
        """
        return cls._replay(data, None)

    @classmethod
    def decompress_into(cls, data: bytes, out: Buffer) -> int:
        """Decode ``data`` into the caller-provided buffer ``out``.

        :param data: Token stream.
        :type data: bytes
        :param out: Writable buffer at least ``decompressed_size(data)``
            bytes long.
        :type out: bytearray | memoryview
        :returns: Number of bytes written.
        :rtype: int
        :raises MalformedStreamError: If the stream is malformed or ``out``
            is too small.
        """
        return cls._replay(data, out)

    @classmethod
    def decompress(cls, data: bytes) -> bytes:
        """Decode a token stream produced by ``compress``.

        :param data: Token stream.
        :type data: bytes
        :returns: Original uncompressed bytes.
        :rtype: bytes
        :raises MalformedStreamError: If the stream is malformed.
        """
        output = bytearray(cls.decompressed_size(data))
        cls._replay(data, output)
        return bytes(output)
