"""
Integration tests for CLI end-to-end workflows.

Tests every operation mode from argument parsing to rendered output,
with input files written to a temporary directory.
"""

import pytest

from dj_metadata.cli import main as cli_main
from dj_metadata.cli.main import create_parser, main
from dj_metadata.samples.vdj_sample import SampleContainer, decode_sample, encode_sample


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, config_manager):
    """Keep the CLI away from real project and user config files"""
    monkeypatch.setattr(cli_main, "get_config_manager", lambda: config_manager)
    return config_manager


@pytest.fixture
def tagged_file(tmp_path, id3v2_tag, id3v2_frame, id3v1_trailer):
    path = tmp_path / "track.mp3"
    path.write_bytes(id3v2_tag(id3v2_frame('TIT2', b"\x00Hello"), padding=32)
                     + b"\x00" * 512
                     + id3v1_trailer(title="Legacy", artist="DJ Test"))
    return path


@pytest.fixture
def serato_file(tmp_path, id3v2_tag, id3v2_frame, geob_attachment, markers2_payload, markers2_record):
    markers = markers2_payload([
        markers2_record.cue(0, 4000, 0xCC0000, "Drop"),
        markers2_record.loop(0, 1000, 5000, 0x27AAE1, label="Loop"),
    ])
    frames = (id3v2_frame('GEOB', geob_attachment("Serato Analysis", b"\x02\x01"))
              + id3v2_frame('GEOB', geob_attachment("Serato Markers2", markers)))
    path = tmp_path / "serato.mp3"
    path.write_bytes(id3v2_tag(frames) + b"\x00" * 300)
    return path


@pytest.fixture
def sample_file(tmp_path):
    sample = SampleContainer(media=b"RIFF" + b"\x01" * 64, path="horn.wav", total_duration=4.0,
                             end_time=4.0, beat_length=0.5, key=1)
    path = tmp_path / "horn.vdjsample"
    path.write_bytes(encode_sample(sample))
    return path, sample


class TestArgumentParsing:
    """Test the parser and argument validation."""

    def test_defaults(self):
        args = create_parser().parse_args(["track.mp3"])
        assert args.mode == "tags"
        assert args.log_level == "WARNING"
        assert not args.drop_path

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "DJ Metadata Toolkit" in capsys.readouterr().out

    def test_missing_input_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.mp3")]) == 1
        assert "does not exist" in capsys.readouterr().err

    def test_fpmatch_needs_two_files(self, tagged_file, capsys):
        assert main(["--mode", "fpmatch", str(tagged_file)]) == 1
        err = capsys.readouterr().err
        assert "Ungültige Option" in err
        assert "Fehler-Code: invalid_option" in err

    def test_sample_options_only_in_sample_mode(self, tagged_file, tmp_path, capsys):
        assert main([str(tagged_file), "--extract-media", str(tmp_path / "out.wav")]) == 1
        assert "Fehler-Code: invalid_option" in capsys.readouterr().err

    def test_invalid_configuration(self, tagged_file, capsys):
        assert main([str(tagged_file), "--max-offset", "-5"]) == 1
        err = capsys.readouterr().err
        assert "Ungültige Konfiguration" in err
        assert "max_offset" in err
        assert "Fehler-Code: config_invalid" in err


class TestTagsMode:
    """Test listing tag containers."""

    def test_lists_frames(self, tagged_file, capsys):
        assert main([str(tagged_file), "--no-color"]) == 0
        out = capsys.readouterr().out
        assert "ID3V2" in out
        assert "TIT2" in out
        assert "Hello" in out
        assert "ID3V1" in out
        assert "Padding: 32 bytes" in out

    def test_no_tags(self, tmp_path, capsys):
        path = tmp_path / "plain.wav"
        path.write_bytes(b"RIFF" + b"\x00" * 400)
        assert main([str(path)]) == 0
        assert "No tags found" in capsys.readouterr().out

    def test_truncated_tag(self, tmp_path, isolated_config, capsys):
        (isolated_config.config_dir / "default.json").write_text('{"tags": {"min_size": 0}}')
        path = tmp_path / "broken.mp3"
        path.write_bytes(b"ID3\x03")
        assert main([str(path)]) == 1
        assert "Fehler-Code" in capsys.readouterr().err


class TestSeratoMode:
    """Test decoding Serato entries."""

    def test_lists_entries_and_cues(self, serato_file, capsys):
        assert main([str(serato_file), "--mode", "serato", "--no-color"]) == 0
        out = capsys.readouterr().out
        assert "SeratoVersion" in out
        assert "SeratoMarkers2" in out
        assert "Drop" in out
        assert "4.000s" in out

    def test_file_without_container(self, tmp_path, capsys):
        path = tmp_path / "plain.mp3"
        path.write_bytes(b"\x00" * 300)
        assert main([str(path), "--mode", "serato"]) == 0
        assert "No ID3v2 tag" in capsys.readouterr().out


class TestSampleMode:
    """Test sample inspection, extraction and rewriting."""

    def test_show_sample(self, sample_file, capsys):
        path, _ = sample_file
        assert main([str(path), "--mode", "sample", "--no-color"]) == 0
        out = capsys.readouterr().out
        assert "120.00" in out
        assert "Am" in out

    def test_extract_and_rewrite(self, sample_file, tmp_path):
        path, sample = sample_file
        media_out = tmp_path / "media.wav"
        rewritten = tmp_path / "copy.vdjsample"

        assert main([str(path), "--mode", "sample",
                     "--extract-media", str(media_out), "--rewrite", str(rewritten)]) == 0
        assert media_out.read_bytes() == sample.media
        assert decode_sample(rewritten.read_bytes()) == sample

    def test_rewrite_without_path(self, sample_file, tmp_path):
        path, _ = sample_file
        rewritten = tmp_path / "anonymous.vdjsample"

        assert main([str(path), "--mode", "sample", "--rewrite", str(rewritten), "--drop-path"]) == 0
        assert decode_sample(rewritten.read_bytes()).path == ""

    def test_not_a_sample(self, tagged_file, capsys):
        assert main([str(tagged_file), "--mode", "sample"]) == 1
        assert "Fehler-Code: invalid_format" in capsys.readouterr().err


class TestFingerprintMode:
    """Test matching two fingerprint files."""

    def test_matching_fingerprints(self, tmp_path, random_fingerprint, fpcalc_json, capsys):
        values = random_fingerprint(300)
        a = tmp_path / "a.json"
        b = tmp_path / "b.txt"
        a.write_text(fpcalc_json(values))
        b.write_text("DURATION=180\nFINGERPRINT=" + ",".join(str(v) for v in values[20:]) + "\n")

        assert main(["--mode", "fpmatch", str(a), str(b)]) == 0
        assert "✅ Fingerprints match" in capsys.readouterr().out

    def test_different_fingerprints(self, tmp_path, random_fingerprint, fpcalc_json, capsys):
        a = tmp_path / "a.json"
        b = tmp_path / "b.json"
        a.write_text(fpcalc_json(random_fingerprint(200, seed=1)))
        b.write_text(fpcalc_json(random_fingerprint(200, seed=2)))

        assert main(["--mode", "fpmatch", "--algorithm", "simple", str(a), str(b)]) == 0
        out = capsys.readouterr().out
        assert "Score (simple)" in out
        assert "❌ Fingerprints do not match" in out

    def test_unreadable_fingerprint(self, tmp_path, capsys):
        a = tmp_path / "a.json"
        a.write_text('{"fingerprint": "AQAAcompressed"}')

        assert main(["--mode", "fpmatch", str(a), str(a)]) == 1
        assert "Fehler-Code" in capsys.readouterr().err
