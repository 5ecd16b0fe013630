"""
Reader configuration loaded from config/config.json
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "config.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "hostname": "http://127.0.0.1:3000",
    "apikey": "",
    "identifier": "",
    "sendFunctionCode": False,
    "useTimestamp": True,
    "EAS": {
        "excludeEvents": [],
        "includeFIPS": [],
        "addressAddType": True,
    },
}


@dataclass(frozen=True)
class EASOptions:
    """Filters handed to the SAME decoder"""
    exclude_events: Tuple[str, ...] = ()
    include_fips: Tuple[str, ...] = ()
    address_add_type: bool = False


@dataclass(frozen=True)
class ReaderConfig:
    """Read-only settings consumed at startup"""
    hostname: str
    apikey: str = ""
    identifier: str = ""
    send_function_code: bool = False
    use_timestamp: bool = True
    eas: EASOptions = field(default_factory=EASOptions)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReaderConfig":
        hostname = data.get("hostname")
        if not hostname:
            raise ConfigError("hostname is not set")

        eas = data.get("EAS") or {}
        if not isinstance(eas, dict):
            raise ConfigError("EAS must be an object")

        use_timestamp = data.get("useTimestamp")
        return cls(
            hostname=str(hostname),
            apikey=str(data.get("apikey") or ""),
            identifier=str(data.get("identifier") or ""),
            send_function_code=bool(data.get("sendFunctionCode", False)),
            use_timestamp=True if use_timestamp is None else bool(use_timestamp),
            eas=EASOptions(
                exclude_events=tuple(eas.get("excludeEvents") or ()),
                include_fips=tuple(str(code) for code in eas.get("includeFIPS") or ()),
                address_add_type=bool(eas.get("addressAddType", False)),
            ),
        )


def write_default_config(path: Union[str, Path]) -> Path:
    """Write the default configuration file, creating parent directories"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(DEFAULT_CONFIG, indent=2))
    logger.info(f"Created config file - set your API key in {path}")
    return path


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> ReaderConfig:
    """Load and validate the configuration file"""
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return ReaderConfig.from_dict(data)
