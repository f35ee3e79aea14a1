from typing import NamedTuple, Optional, Union

from errors import BufferTooSmallError, MalformedStreamError

MATCH_FLAG = 0x80  #: High bit of a header byte marks a match token
LENGTH_MASK = 0x7F  #: Low 7 bits of a header byte hold the token length
MAX_LENGTH = 127  #: Longest literal run or match a single token can carry
MAX_OFFSET = 0xFFFF  #: Largest offset the 16-bit field can hold

Buffer = Union[bytearray, memoryview]


class Token(NamedTuple):
    """A decoded token.

    Literal runs have ``offset == 0`` and carry their raw bytes in
    ``literals``; matches have a positive ``offset`` and empty ``literals``.
    """

    offset: int
    length: int
    literals: bytes = b""

    @property
    def is_match(self) -> bool:
        return self.offset > 0


class TokenWriter:
    """Byte writer for the LZ77x token grammar.

    Appends to an internal growable buffer, or writes into a fixed
    caller-provided buffer when one is given.

    :ivar buffer: Destination buffer.
    :type buffer: bytearray | memoryview
    :ivar pos: Number of bytes written so far.
    :type pos: int
    """

    def __init__(self, buffer: Optional[Buffer] = None):
        """Create a token writer.

        :param buffer: Fixed-size destination, or ``None`` to grow an
            internal ``bytearray`` as needed.
        :type buffer: Optional[bytearray | memoryview]
        :returns: None
        :rtype: None
        """
        self._fixed = buffer is not None
        self.buffer = buffer if buffer is not None else bytearray()
        self.pos = 0

    def _reserve(self, nbytes: int):
        """Make sure ``nbytes`` more bytes fit at the current position.

        :param nbytes: Number of bytes about to be written.
        :type nbytes: int
        :returns: None
        :rtype: None
        :raises BufferTooSmallError: If a fixed buffer is too short.
        """
        end = self.pos + nbytes
        if end <= len(self.buffer):
            return
        if self._fixed:
            raise BufferTooSmallError(
                f"Output buffer of {len(self.buffer)} bytes cannot hold "
                f"{nbytes} more bytes at position {self.pos}"
            )
        self.buffer.extend(bytes(end - len(self.buffer)))

    def write_literals(self, data: bytes, start: int, end: int):
        """Write a literal run token covering ``data[start:end]``.

        :param data: Source bytes.
        :type data: bytes
        :param start: First byte of the run.
        :type start: int
        :param end: One past the last byte of the run.
        :type end: int
        :returns: None
        :rtype: None
        :raises ValueError: If the run length is outside ``1..127``.
        """
        length = end - start
        if not 1 <= length <= MAX_LENGTH:
            raise ValueError(f"Literal run length {length} out of range")
        self._reserve(1 + length)
        self.buffer[self.pos] = length
        self.buffer[self.pos + 1:self.pos + 1 + length] = data[start:end]
        self.pos += 1 + length

    def write_match(self, length: int, offset: int):
        """Write a match token: header byte then big-endian offset.

        :param length: Match length (``1..127``).
        :type length: int
        :param offset: Backward distance (``1..65535``).
        :type offset: int
        :returns: None
        :rtype: None
        :raises ValueError: If a field is outside its range.
        """
        if not 1 <= length <= MAX_LENGTH:
            raise ValueError(f"Match length {length} out of range")
        if not 1 <= offset <= MAX_OFFSET:
            raise ValueError(f"Match offset {offset} out of range")
        self._reserve(3)
        self.buffer[self.pos] = MATCH_FLAG | length
        self.buffer[self.pos + 1] = offset >> 8
        self.buffer[self.pos + 2] = offset & 0xFF
        self.pos += 3

    def flush(self) -> bytes:
        """Return the bytes written so far.

        :returns: Copy of the written part of the buffer.
        :rtype: bytes
        """
        return bytes(self.buffer[:self.pos])


class TokenReader:
    """Sequential reader of LZ77x tokens.

    :ivar data: Token stream.
    :type data: bytes
    :ivar pos: Current byte position in ``data``.
    :type pos: int
    """

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def read_token(self) -> Token:
        """Read the next token from the stream.

        :returns: The decoded token.
        :rtype: Token
        :raises MalformedStreamError: If the token is truncated or has a
            zero length.
        :raises EOFError: If the stream is already exhausted.
        """
        if self.at_end():
            raise EOFError("Unexpected end of data")
        start = self.pos
        header = self.data[self.pos]
        self.pos += 1
        length = header & LENGTH_MASK
        if length == 0:
            raise MalformedStreamError(
                f"Zero-length token at stream position {start}"
            )
        if header & MATCH_FLAG:
            if self.pos + 2 > len(self.data):
                raise MalformedStreamError(
                    f"Truncated match offset at stream position {start}"
                )
            offset = (self.data[self.pos] << 8) | self.data[self.pos + 1]
            self.pos += 2
            if offset == 0:
                raise MalformedStreamError(
                    f"Zero match offset at stream position {start}"
                )
            return Token(offset, length)
        if self.pos + length > len(self.data):
            raise MalformedStreamError(
                f"Literal run of {length} bytes at stream position {start} "
                f"exceeds the {len(self.data) - self.pos} bytes remaining"
            )
        literals = bytes(self.data[self.pos:self.pos + length])
        self.pos += length
        return Token(0, length, literals)

    def __iter__(self):
        while not self.at_end():
            yield self.read_token()
