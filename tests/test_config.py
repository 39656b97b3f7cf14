import os

from photobooth.config import BoothConfig


def test_defaults():
    config = BoothConfig()
    assert config.export_base == 320
    assert config.capture_base == 640
    assert config.inference_interval == 0.1


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("PHOTOBOOTH_CAMERA_ID", "2")
    monkeypatch.setenv("PHOTOBOOTH_INFERENCE_INTERVAL", "0.25")
    monkeypatch.setenv("PHOTOBOOTH_STAMP_PATH", "assets/code.png")
    monkeypatch.setenv("PHOTOBOOTH_OUTPUT_DIR", "")

    config = BoothConfig.from_env(tmp_path / "missing.env")

    assert config.camera_id == 2
    assert config.inference_interval == 0.25
    assert config.stamp_path == "assets/code.png"
    assert config.output_dir == "output"


def test_env_file(monkeypatch, tmp_path):
    monkeypatch.delenv("PHOTOBOOTH_EXPORT_BASE", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("PHOTOBOOTH_EXPORT_BASE=400\n")
    try:
        assert BoothConfig.from_env(env_file).export_base == 400
    finally:
        os.environ.pop("PHOTOBOOTH_EXPORT_BASE", None)
