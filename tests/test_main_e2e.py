def test_compress_and_decompress_roundtrip(
        sample_file, tmp_path, no_progress, m
):
    packed = tmp_path / "sample.lz"
    status = m.compress_file(
        str(sample_file), str(packed), hide_progress=False
    )
    assert status == 0
    assert packed.exists()
    assert packed.stat().st_size < sample_file.stat().st_size
    assert no_progress and "100.00%" in no_progress[-1]

    restored = tmp_path / "restored.txt"
    assert m.main(["decompress", str(packed), "-o", str(restored)]) == 0
    assert restored.read_bytes() == sample_file.read_bytes()


def test_compress_empty_file(tmp_path, m):
    empty = tmp_path / "empty"
    empty.write_bytes(b"")
    packed = tmp_path / "empty.lz"
    assert m.main(["c", str(empty), "-o", str(packed), "-P"]) == 0
    assert packed.read_bytes() == b""


def test_verify_reports_okay(sample_file, capsys, m):
    assert m.main(["verify", str(sample_file)]) == 0
    out = capsys.readouterr().out
    assert f"Input length: {sample_file.stat().st_size}" in out
    assert "Okay." in out


def test_missing_input_reported(tmp_path, capsys, m):
    missing = str(tmp_path / "nope.bin")
    assert m.main(["verify", missing]) == 1
    assert m.main(["c", missing, "-o", str(tmp_path / "x"), "-P"]) == 1
    assert "[!] Unable to load file" in capsys.readouterr().out


def test_decompress_corrupt_stream_reported(tmp_path, capsys, m):
    bad = tmp_path / "bad.lz"
    bad.write_bytes(b"\x01A" + bytes([0x84, 0x00, 0x09]))
    out_path = tmp_path / "out.bin"
    assert m.main(["d", str(bad), "-o", str(out_path)]) == 1
    assert not out_path.exists()
    assert "[!] Corrupt token stream" in capsys.readouterr().out
