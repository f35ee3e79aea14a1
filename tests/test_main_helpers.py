import argparse
import pytest


def test_fmt_pct_and_bytes(m):
    assert m._fmt_pct(0, 0) == "0%"
    assert m._fmt_pct(50, 100).strip().endswith("%")
    assert m._fmt_pct(10, 10).strip().startswith("100")

    assert m._fmt_bytes(0) == "0.00 B"
    assert m._fmt_bytes(1024).endswith("KiB")


def test_fmt_ratio(m):
    assert m._fmt_ratio(100, 0) == "n/a"
    assert m._fmt_ratio(100, 50) == "2.00"


def test_fileprogress_calls_bucketed(no_progress, m):
    p = m.FileProgress("Compressing", "x.txt")
    p(0, 100)
    p(0, 100)
    p(10, 100)
    p(10, 100)
    p(19, 100)
    p(19, 100)
    p(5, 0)
    assert len(no_progress) == 3
    assert all("Compressing x.txt" in line for line in no_progress)


def test_positive_int(m):
    assert m._positive_int("8") == 8
    with pytest.raises(argparse.ArgumentTypeError):
        m._positive_int("0")
    with pytest.raises(argparse.ArgumentTypeError):
        m._positive_int("many")


def test_cli_parser_accepts_subcommands(m):
    parser = m.get_parser()
    ns = parser.parse_args(["compress", "in.bin", "-o", "out.lz"])
    assert ns.cmd in ("compress", "c")
    assert ns.max_chain is None
    ns2 = parser.parse_args(["d", "in.lz", "-o", "out.bin"])
    assert ns2.cmd in ("decompress", "d")
    ns3 = parser.parse_args(["verify", "in.bin"])
    assert ns3.cmd in ("verify", "v")
    ns4 = parser.parse_args(["c", "in.bin", "-o", "o", "--max-chain", "16"])
    assert ns4.max_chain == 16


def test_cli_parser_rejects_bad_max_chain(m):
    parser = m.get_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["c", "in.bin", "-o", "o", "--max-chain", "0"])
