"""
Config Module - Application Settings
====================================
Runtime settings for the photobooth. Defaults can be overridden through
environment variables (``PHOTOBOOTH_*``), which are also read from a ``.env``
file in the working directory.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv


ENV_PREFIX = "PHOTOBOOTH_"


@dataclass(frozen=True)
class BoothConfig:
    """
    Settings shared by the controller and the UI.

    Attributes:
        camera_id: Camera device index
        camera_width: Requested capture width
        camera_height: Requested capture height
        thumbnail_base: Slot base for the layout picker thumbnail
        selection_base: Slot base for the selection strip preview
        export_base: Slot base for the final strip
        capture_base: Slot base for captured photos
        inference_interval: Seconds between hand landmark requests
        stamp_path: Path of the code image stamped on the strip
        output_dir: Directory that downloaded strips are written to
        log_level: Logging level name
    """
    # Camera
    camera_id: int = 0
    camera_width: int = 1280
    camera_height: int = 720

    # Geometry bases (px)
    thumbnail_base: int = 160
    selection_base: int = 130
    export_base: int = 320
    capture_base: int = 640

    # Gesture inference cadence
    inference_interval: float = 0.1

    # Assets / output
    stamp_path: str = "qr.jpg"
    output_dir: str = "output"

    # Contact form (EmailJS)
    emailjs_public_key: str = ""
    emailjs_service_id: str = ""
    emailjs_template_id: str = ""

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "BoothConfig":
        """
        Build a config from environment variables.

        Args:
            env_file: Optional .env file to load first (defaults to ./.env)

        Returns:
            BoothConfig with any ``PHOTOBOOTH_*`` overrides applied
        """
        load_dotenv(env_file or Path.cwd() / ".env")

        defaults = cls()
        overrides = {}
        for name, value in vars(defaults).items():
            raw = os.environ.get(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            overrides[name] = _coerce(raw, type(value))
        return replace(defaults, **overrides)


def _coerce(raw: str, kind: type):
    if kind is int:
        return int(raw)
    if kind is float:
        return float(raw)
    return raw
