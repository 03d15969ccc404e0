from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

_HA_OPTIONS = Path("/data/options.json")


def _load_ha_options() -> dict:
    """Load Home Assistant addon options if available."""
    if _HA_OPTIONS.is_file():
        return json.loads(_HA_OPTIONS.read_text())
    return {}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PRINTRELAY_", env_file=".env", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"

    # Storage
    config_dir: Path = Path("./printer-config")
    upload_dir: Path = Path("/tmp/printer-uploads")
    max_upload_bytes: int = 50 * 1024 * 1024

    # CUPS
    cups_server: Optional[str] = None
    # None keeps lp unbounded; set to kill hung submissions
    print_timeout_s: Optional[float] = None
    lpstat_timeout_s: float = 5.0

    # Web client build; defaults to printrelay/static
    static_dir: Optional[Path] = None

    # mDNS advertisement
    mdns_enabled: bool = True
    service_name: str = "PrintRelay"
    service_version: str = "1.0.0"

    @property
    def static_path(self) -> Path:
        return self.static_dir or Path(__file__).parent / "static"

    def model_post_init(self, __context) -> None:
        # Overlay HA options onto env-sourced values
        ha = _load_ha_options()
        if ha.get("cups_server") and not self.cups_server:
            self.cups_server = ha["cups_server"]
        if ha.get("port"):
            self.port = int(ha["port"])


def get_settings() -> Settings:
    return Settings()
