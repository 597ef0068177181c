from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from sheet2cho.cli import _default_filename, _slugify, main
from sheet2cho.exceptions import EmptyResultError, NetworkError, UnsupportedSiteError
from sheet2cho.models import Song

AMDM_URL = "https://amdm.ru/akkordi/kino/99411/gruppa_krovi/"

CHO = """\
{title: Группа крови}
{artist: Кино}

{c: Вступление}
[Am] [C] [Dm] [G]

{c: Куплет}
[Am]Тёплое место, [C]но улицы ждут
"""

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_song(title="Группа крови", artist="Кино") -> Song:
    return Song(title=title, artist=artist, cho=f"{{title: {title}}}\n{{artist: {artist}}}\n\n[Am]la")


def _mock_adapter(song=None) -> MagicMock:
    adapter = MagicMock()
    adapter.scrape.return_value = song or _make_song()
    return adapter


# ---------------------------------------------------------------------------
# _slugify
# ---------------------------------------------------------------------------


def test_slugify_basic():
    assert _slugify("The Weight") == "the-weight"


def test_slugify_keeps_cyrillic():
    assert _slugify("Группа крови!") == "группа-крови"


def test_default_filename():
    assert _default_filename("Кино", "Группа крови") == "кино-группа-крови.cho"
    assert _default_filename("", "???") == "song.cho"


# ---------------------------------------------------------------------------
# --help
# ---------------------------------------------------------------------------


def test_help_output():
    result = CliRunner().invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "convert" in result.output
    assert "view" in result.output


# ---------------------------------------------------------------------------
# convert
# ---------------------------------------------------------------------------


def test_convert_stdout():
    with patch("sheet2cho.cli.get_adapter", return_value=_mock_adapter()):
        result = CliRunner().invoke(main, ["convert", "--stdout", AMDM_URL])
    assert result.exit_code == 0
    assert result.output == "{title: Группа крови}\n{artist: Кино}\n\n[Am]la\n"


def test_convert_writes_default_file(tmp_path):
    runner = CliRunner()
    with patch("sheet2cho.cli.get_adapter", return_value=_mock_adapter()):
        with runner.isolated_filesystem(temp_dir=tmp_path) as cwd:
            result = runner.invoke(main, ["convert", AMDM_URL])
            written = (tmp_path / cwd / "кино-группа-крови.cho").read_text(encoding="utf-8")
    assert result.exit_code == 0
    assert "Written to кино-группа-крови.cho" in result.output
    assert written.endswith("[Am]la\n")


def test_convert_output_path(tmp_path):
    dest = tmp_path / "out.cho"
    with patch("sheet2cho.cli.get_adapter", return_value=_mock_adapter()):
        result = CliRunner().invoke(main, ["convert", "-o", str(dest), AMDM_URL])
    assert result.exit_code == 0
    assert dest.read_text(encoding="utf-8").startswith("{title: Группа крови}")


def test_convert_passes_label():
    with patch("sheet2cho.cli.get_adapter", return_value=_mock_adapter()) as get_adapter:
        CliRunner().invoke(main, ["convert", "--stdout", "--label", "pesnipodgitaru", "page.html"])
    get_adapter.assert_called_once_with("page.html", "pesnipodgitaru")


def test_convert_local_file_end_to_end(tmp_path):
    src = tmp_path / "song.txt"
    src.write_text("Кино - Группа крови\n[Куплет]\nAm   C\nhello world\n", encoding="utf-8")
    result = CliRunner().invoke(main, ["convert", "--stdout", str(src)])
    assert result.exit_code == 0
    assert result.output == "{title: Группа крови}\n{artist: Кино}\n\n{c: Куплет}\n[Am]hello[C] world\n"


def test_convert_shift_transposes_chords(tmp_path):
    src = tmp_path / "song.txt"
    src.write_text("Кино - Группа крови\n[Куплет]\nAm   C\nhello world\n", encoding="utf-8")
    result = CliRunner().invoke(main, ["convert", "--stdout", "--shift=-2", str(src)])
    assert result.exit_code == 0
    assert result.output == "{title: Группа крови}\n{artist: Кино}\n\n{c: Куплет}\n[Gm]hello[B] world\n"


def test_convert_preserve_chord_rows(tmp_path):
    src = tmp_path / "song.txt"
    src.write_text("Кино - Группа крови\n[Куплет]\nAm   C\nhello world\n", encoding="utf-8")
    result = CliRunner().invoke(main, ["convert", "--stdout", "--preserve-chord-rows", str(src)])
    assert result.exit_code == 0
    assert result.output.endswith("{c: Куплет}\n[Am] [C]\nhello world\n")


def test_convert_passes_no_options_by_default():
    adapter = _mock_adapter()
    with patch("sheet2cho.cli.get_adapter", return_value=adapter):
        CliRunner().invoke(main, ["convert", "--stdout", AMDM_URL])
    adapter.scrape.assert_called_once_with(AMDM_URL, None)


def test_convert_unsupported_site():
    with patch("sheet2cho.cli.get_adapter", side_effect=UnsupportedSiteError("https://example.com/x")):
        result = CliRunner().invoke(main, ["convert", "https://example.com/x"])
    assert result.exit_code == 1
    assert "Supported sites" in result.output


def test_convert_network_error():
    adapter = MagicMock()
    adapter.scrape.side_effect = NetworkError(AMDM_URL, 503)
    with patch("sheet2cho.cli.get_adapter", return_value=adapter):
        result = CliRunner().invoke(main, ["convert", AMDM_URL])
    assert result.exit_code == 1
    assert f"Could not fetch {AMDM_URL} (HTTP 503)" in result.output


def test_convert_empty_result():
    adapter = MagicMock()
    adapter.scrape.side_effect = EmptyResultError(AMDM_URL)
    with patch("sheet2cho.cli.get_adapter", return_value=adapter):
        result = CliRunner().invoke(main, ["convert", AMDM_URL])
    assert result.exit_code == 1
    assert "No song text found" in result.output


# ---------------------------------------------------------------------------
# view
# ---------------------------------------------------------------------------


def _write_cho(tmp_path):
    path = tmp_path / "song.cho"
    path.write_text(CHO, encoding="utf-8")
    return path


def test_view_prints_chords_above_lyrics(tmp_path):
    result = CliRunner().invoke(main, ["view", str(_write_cho(tmp_path))])
    assert result.exit_code == 0
    lines = result.output.split("\n")
    assert "[Куплет]" in lines
    i = lines.index("Тёплое место, но улицы ждут")
    assert lines[i - 1] == "Am".ljust(14) + "C"


def test_view_hide_instrumentals(tmp_path):
    result = CliRunner().invoke(main, ["view", "--hide-instrumentals", str(_write_cho(tmp_path))])
    assert result.exit_code == 0
    assert "Вступление" not in result.output
    assert "Am C Dm G" not in result.output
    assert "[Куплет]" in result.output


def test_view_chord_list(tmp_path):
    result = CliRunner().invoke(main, ["view", "--chords", str(_write_cho(tmp_path))])
    assert result.output.rstrip().endswith("Chords: Am C Dm G")


def test_view_missing_file(tmp_path):
    result = CliRunner().invoke(main, ["view", str(tmp_path / "missing.cho")])
    assert result.exit_code != 0
