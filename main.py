import argparse
import sys

from typing import Optional
from errors import CodecError
from lz77 import LZ77Compressor


def _positive_int(value: str) -> int:
    """Parse a strictly positive integer CLI argument.

    :param value: Raw argument text.
    :type value: str
    :returns: Parsed integer.
    :rtype: int
    :raises argparse.ArgumentTypeError: If the value is not positive.
    """
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value}")
    if number < 1:
        raise argparse.ArgumentTypeError(
            f"expected a positive integer, got {value}"
        )
    return number


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="LZ77 compressor with a 64 KiB sliding window"
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    compress = subparsers.add_parser(
        "compress", aliases=["c"], help="Compress a file into a token stream"
    )
    compress.add_argument("input", help="File to compress")
    compress.add_argument(
        "-o", "--output", required=True, help="Output token stream path"
    )
    compress.add_argument(
        "--max-chain",
        type=_positive_int,
        default=None,
        help="Limit hash chain candidates per search (default: unlimited)",
    )
    compress.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide compression progress",
    )

    decompress = subparsers.add_parser(
        "decompress", aliases=["d"], help="Decompress a token stream"
    )
    decompress.add_argument("input", help="Token stream to decompress")
    decompress.add_argument(
        "-o", "--output", required=True, help="Output file path"
    )

    verify = subparsers.add_parser(
        "verify",
        aliases=["v"],
        help="Compress a file in memory and check it decodes back",
    )
    verify.add_argument("input", help="File to check")

    return parser


def _print_progress(line: str) -> None:
    """Render and flush a single progress line in-place (carriage return).

    :param line: The textual progress line to display.
    :type line: str
    :returns: None
    :rtype: None
    """
    sys.stdout.write("\r" + line)
    sys.stdout.flush()


def _fmt_pct(done: int, total: int) -> str:
    """Format a completion percentage string like ``12.34%``.

    :param done: Units completed.
    :type done: int
    :param total: Total units to complete.
    :type total: int
    :returns: Percentage.
    :rtype: str
    """
    if total <= 0:
        return "0%"
    pct = 100.0 * (done / float(total))
    return f"{pct:6.2f}%"


def _fmt_bytes(n: int) -> str:
    """Format a byte count into a human-readable string.

    :param n: Number of bytes.
    :type n: int
    :returns: Human-readable string.
    :rtype: str
    """
    for unit in ['', 'Ki', 'Mi', 'Gi', 'Ti']:
        if abs(n) < 1024:
            return f"{n:.2f} {unit}B"
        n /= 1024
    return f"{n:.2f} PiB"


def _fmt_ratio(original: int, compressed: int) -> str:
    if compressed <= 0:
        return "n/a"
    return f"{original / compressed:.2f}"


class FileProgress:
    """Callable progress reporter for a single file.

    Redraws only when the whole-percent bucket changes.

    :ivar label: Action label (e.g., "Compressing").
    :type label: str
    :ivar path: File name displayed next to the percentage.
    :type path: str
    """

    def __init__(self, label: str, path: str) -> None:
        self.label = label
        self.path = path
        self._last_reported = -1

    def __call__(self, done: int, total: int) -> None:
        """Update the progress display.

        :param done: Bytes processed.
        :type done: int
        :param total: Total bytes.
        :type total: int
        :returns: None
        :rtype: None
        """
        if total <= 0:
            return
        percent_bucket = int((done * 100) / total)
        if percent_bucket == self._last_reported:
            return
        self._last_reported = percent_bucket
        _print_progress(f"{self.label} {self.path}  {_fmt_pct(done, total)}")


def _read_file(path: str) -> Optional[bytes]:
    """Load a whole file into memory.

    :param path: File to read.
    :type path: str
    :returns: File contents, or ``None`` after reporting the failure.
    :rtype: Optional[bytes]
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        print(f"[!] Unable to load file {path}: {e.strerror}")
        return None


def _write_file(path: str, data: bytes) -> bool:
    """Write ``data`` to ``path``, reporting failures.

    :param path: Destination path.
    :type path: str
    :param data: Bytes to store.
    :type data: bytes
    :returns: ``True`` on success.
    :rtype: bool
    """
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        print(f"[!] Unable to save file {path}: {e.strerror}")
        return False
    return True


def compress_file(
    input_path: str,
    output_path: str,
    hide_progress: bool,
    max_chain: Optional[int] = None,
) -> int:
    """Compress ``input_path`` into a raw token stream at ``output_path``.

    :param input_path: File to compress.
    :type input_path: str
    :param output_path: Destination of the token stream.
    :type output_path: str
    :param hide_progress: Whether to suppress the progress line.
    :type hide_progress: bool
    :param max_chain: Optional hash chain limit.
    :type max_chain: Optional[int]
    :returns: Process exit status.
    :rtype: int
    """
    data = _read_file(input_path)
    if data is None:
        return 1
    lz = LZ77Compressor(max_chain=max_chain)
    if not hide_progress and data:
        comp = lz.compress(data, on_progress=FileProgress(
            "Compressing", input_path
        ))
        sys.stdout.write("\n")
        sys.stdout.flush()
    else:
        comp = lz.compress(data)
    if not _write_file(output_path, comp):
        return 1
    print("Size before compression: ", _fmt_bytes(len(data)))
    print("Size after compression: ", _fmt_bytes(len(comp)))
    print(f"Compression ratio: {_fmt_ratio(len(data), len(comp))}")
    return 0


def decompress_file(input_path: str, output_path: str) -> int:
    """Decode the token stream in ``input_path`` into ``output_path``.

    :param input_path: Token stream to decode.
    :type input_path: str
    :param output_path: Destination of the decoded data.
    :type output_path: str
    :returns: Process exit status.
    :rtype: int
    """
    comp = _read_file(input_path)
    if comp is None:
        return 1
    try:
        data = LZ77Compressor.decompress(comp)
    except CodecError as e:
        print(f"[!] Corrupt token stream {input_path}: {e}")
        return 1
    if not _write_file(output_path, data):
        return 1
    print("Decoded length: ", _fmt_bytes(len(data)))
    return 0


def verify_file(input_path: str) -> int:
    """Compress a file in memory and check that it decodes back unchanged.

    :param input_path: File to check.
    :type input_path: str
    :returns: Process exit status (0 when the round trip is exact).
    :rtype: int
    """
    data = _read_file(input_path)
    if data is None:
        return 1
    print(f"Input length: {len(data)}")
    lz = LZ77Compressor()
    encoded = bytearray(lz.max_compressed_size(len(data)))
    enc_len = lz.compress_into(data, encoded)
    print(f"Compressed length: {enc_len}")
    stream = bytes(encoded[:enc_len])
    decoded = bytearray(len(data))
    if (
        LZ77Compressor.decompressed_size(stream) != len(data)
        or LZ77Compressor.decompress_into(stream, decoded) != len(data)
    ):
        print("[!] Decoded length differs from original.")
        return 1
    for idx in range(len(data)):
        if decoded[idx] != data[idx]:
            print(f"[!] Decoded data corrupt at index {idx}")
            return 1
    print("Okay.")
    return 0


def main(argv=None) -> int:
    """Entry point for the CLI tool.

    :param argv: Argument list, defaults to ``sys.argv[1:]``.
    :type argv: Optional[List[str]]
    :returns: Process exit status.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)

    if args.cmd in ["compress", "c"]:
        return compress_file(
            args.input,
            args.output,
            getattr(args, "no_progress", False),
            args.max_chain,
        )
    if args.cmd in ["decompress", "d"]:
        return decompress_file(args.input, args.output)
    return verify_file(args.input)


if __name__ == "__main__":
    sys.exit(main())
