class CodecError(ValueError):
    """Base class for all LZ77x codec failures."""


class MalformedStreamError(CodecError):
    """Raised when a token stream violates the token grammar.

    Covers truncated tokens, zero-length headers, offsets reaching before
    the start of the decoded output and output buffers that are too small
    for the decoded data.
    """


class BufferTooSmallError(CodecError):
    """Raised when a caller-provided output buffer cannot hold the
    next encoded token."""
