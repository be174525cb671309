from pathlib import Path

from greetmotion.config import UserConfig, get_config, reset_config
from greetmotion.constants import DEFAULT_FFMPEG_BINARY, ENV_FFMPEG_BINARY, ENV_FONT_DIR


def _clear_env(monkeypatch):
    monkeypatch.delenv(ENV_FFMPEG_BINARY, raising=False)
    monkeypatch.delenv(ENV_FONT_DIR, raising=False)


def test_defaults_without_config_file(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    config = UserConfig.load([tmp_path / "missing.toml"])

    assert config.ffmpeg_binary == DEFAULT_FFMPEG_BINARY
    assert config.output.width == 1080
    assert config.output.height == 1920
    assert config.font_dir is None
    assert config.source is None


def test_load_from_file(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    path = tmp_path / "config.toml"
    path.write_text(
        '[ffmpeg]\nbinary = "/opt/ffmpeg/bin/ffmpeg"\ncrf = 18\npreset = "slow"\n\n'
        "[output]\nwidth = 720\nheight = 1280\nfps = 25\n\n"
        f'[fonts]\nfont_dir = "{tmp_path}"\ndefault_font = "Poppins-Bold.ttf"\n'
    )
    config = UserConfig.load([tmp_path / "missing.toml", path])

    assert config.ffmpeg_binary == "/opt/ffmpeg/bin/ffmpeg"
    assert config.crf_quality == 18
    assert config.preset == "slow"
    assert (config.output.width, config.output.height, config.output.fps) == (720, 1280, 25)
    assert config.font_dir == tmp_path
    assert config.source == path


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    path.write_text('[ffmpeg]\nbinary = "/opt/ffmpeg/bin/ffmpeg"\n')
    monkeypatch.setenv(ENV_FFMPEG_BINARY, "/usr/local/bin/ffmpeg")
    monkeypatch.setenv(ENV_FONT_DIR, "/usr/share/fonts/greetings")

    config = UserConfig.load([path])
    assert config.ffmpeg_binary == "/usr/local/bin/ffmpeg"
    assert config.font_dir == Path("/usr/share/fonts/greetings")


def test_malformed_file_is_ignored(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    path = tmp_path / "config.toml"
    path.write_text("[ffmpeg\nbinary = ")

    config = UserConfig.load([path])
    assert config.ffmpeg_binary == DEFAULT_FFMPEG_BINARY
    assert config.source is None


def test_resolve_font(tmp_path):
    config = UserConfig(font_dir=tmp_path, default_font="Poppins-Bold.ttf")

    assert config.resolve_font(None) == tmp_path / "Poppins-Bold.ttf"
    assert config.resolve_font("Lobster.ttf") == tmp_path / "Lobster.ttf"
    assert config.resolve_font("/fonts/Other.ttf") == Path("/fonts/Other.ttf")
    assert UserConfig().resolve_font(None) is None


def test_global_config_is_cached(monkeypatch):
    _clear_env(monkeypatch)
    first = get_config()
    assert get_config() is first
    reset_config()
    assert get_config() is not first
