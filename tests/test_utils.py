from shared.config import ServiceConfig
from shared.utils import config, sanitize_filename, setup_logging


def test_config_env_loading() -> None:
    assert isinstance(config.get("allowed_origins"), list)
    assert config.get("redis_url")
    assert config.get("refresh_queue_key")
    assert isinstance(config.get("encoder_timeout_seconds"), float)
    assert isinstance(config.get("stream_chunk_size"), int)


def test_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("FFMPEG_PATH", "/opt/ffmpeg/bin/ffmpeg")
    monkeypatch.setenv("SUBTITLE_PROVIDER_TIMEOUT", "7")

    service_config = ServiceConfig()

    assert service_config.get("ffmpeg_path") == "/opt/ffmpeg/bin/ffmpeg"
    assert service_config.get("subtitle_provider_timeout") == 7


def test_get_setting_dotted_path() -> None:
    service_config = ServiceConfig()
    service_config.set_settings({"encoder": {"formats": {"sub": {"muxer": "microdvd"}}}})

    assert service_config.get_setting("encoder.formats.sub.muxer") == "microdvd"
    assert service_config.get_setting("encoder.missing", "fallback") == "fallback"


def test_get_setting_env_override(monkeypatch) -> None:
    service_config = ServiceConfig()
    service_config.set_settings({"playlist": {"enabled": False}})
    monkeypatch.setenv("SUBTITLES_FLAG_PLAYLIST_ENABLED", "true")

    assert service_config.get_setting("playlist.enabled") is True


def test_missing_settings_file(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("SUBTITLE_SETTINGS_PATH", str(tmp_path / "absent.yaml"))

    assert ServiceConfig().settings == {}


def test_sanitize_filename() -> None:
    fname = "bad:file/name?.srt"
    safe = sanitize_filename(fname)
    assert ":" not in safe and "/" not in safe and "?" not in safe


def test_setup_logging_reuses_handler() -> None:
    logger = setup_logging("subtitle-test", log_level="debug")
    again = setup_logging("subtitle-test")

    assert logger is again
    assert len(logger.handlers) == 1


def test_config_keys() -> None:
    assert set(ServiceConfig().config) == {
        "log_level",
        "allowed_origins",
        "redis_url",
        "refresh_queue_key",
        "library_manifest_path",
        "ffmpeg_path",
        "encoder_timeout_seconds",
        "subtitle_provider_url",
        "subtitle_provider_timeout",
        "stream_chunk_size",
    }
