import os
import json
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

from config.log_config import app_logger

SYSTEM_CONFIG_PATH = os.path.join("config", "system_config.json")

DEFAULT_SYSTEM_CONFIG = {
    "endpoint_url": "https://api.mymemory.translated.net/get",
    "lang_pair": "en|ar",
    "max_chunk_length": 500,
    "max_retries": 5,
    "base_delay_ms": 1000,
    "request_timeout": 30,
    "thread_count": 1,
    "deadline_seconds": None,
    "result_dir": "result",
    "log_dir": "log",
    "lan_mode": False
}

# Option names used by the web form / external callers
OPTION_ALIASES = {
    "endpointUrl": "endpoint_url",
    "langPair": "lang_pair",
    "maxChunkLength": "max_chunk_length",
    "maxRetries": "max_retries",
    "baseDelayMs": "base_delay_ms",
    "requestTimeout": "request_timeout",
    "threadCount": "thread_count",
    "deadlineSeconds": "deadline_seconds",
    "resultDir": "result_dir",
    "logDir": "log_dir",
}

# Numeric options may arrive as strings from the web form or a hand-edited file
NUMERIC_OPTIONS = {
    "max_chunk_length": int,
    "max_retries": int,
    "base_delay_ms": int,
    "request_timeout": float,
    "thread_count": int,
    "deadline_seconds": float,
}


def convert_option(name, value):
    """Convert a numeric option to its type, raising ValueError when it is not a number"""
    convert = NUMERIC_OPTIONS.get(name)
    if convert is None:
        return value
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return convert(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be {convert.__name__}, got {value!r}") from e


def read_system_config(config_path=SYSTEM_CONFIG_PATH):
    """Read system configuration, falling back to defaults"""
    config = dict(DEFAULT_SYSTEM_CONFIG)
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            stored = json.load(f)
        if isinstance(stored, dict):
            config.update(stored)
        else:
            app_logger.warning(f"Ignoring system config {config_path}: expected a JSON object")
    except FileNotFoundError:
        pass
    except json.JSONDecodeError as e:
        app_logger.warning(f"Could not parse system config {config_path}: {e}")
    return config


def write_system_config(config, config_path=SYSTEM_CONFIG_PATH):
    """Write system configuration to config file"""
    config_dir = os.path.dirname(config_path)
    if config_dir:
        os.makedirs(config_dir, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=4, ensure_ascii=False)


def update_system_config(key, value, config_path=SYSTEM_CONFIG_PATH):
    """Persist a single setting and return it"""
    config = read_system_config(config_path)
    config[key] = value
    write_system_config(config, config_path)
    return value


def get_custom_paths(config=None):
    """Get result and log directories from config and ensure they exist"""
    config = config or read_system_config()
    result_dir = config.get("result_dir", "result")
    log_dir = config.get("log_dir", "log")

    os.makedirs(result_dir, exist_ok=True)
    os.makedirs(log_dir, exist_ok=True)

    return result_dir, log_dir


@dataclass
class TranslationConfig:
    """Settings for one document translation run"""

    endpoint_url: str = DEFAULT_SYSTEM_CONFIG["endpoint_url"]
    lang_pair: str = DEFAULT_SYSTEM_CONFIG["lang_pair"]
    max_chunk_length: int = DEFAULT_SYSTEM_CONFIG["max_chunk_length"]
    max_retries: int = DEFAULT_SYSTEM_CONFIG["max_retries"]
    base_delay_ms: int = DEFAULT_SYSTEM_CONFIG["base_delay_ms"]
    request_timeout: float = DEFAULT_SYSTEM_CONFIG["request_timeout"]
    thread_count: int = DEFAULT_SYSTEM_CONFIG["thread_count"]
    deadline_seconds: Optional[float] = DEFAULT_SYSTEM_CONFIG["deadline_seconds"]
    result_dir: str = DEFAULT_SYSTEM_CONFIG["result_dir"]
    log_dir: str = DEFAULT_SYSTEM_CONFIG["log_dir"]

    def __post_init__(self):
        if self.max_chunk_length < 1:
            raise ValueError(f"max_chunk_length must be at least 1, got {self.max_chunk_length}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {self.max_retries}")
        if self.base_delay_ms < 0:
            raise ValueError(f"base_delay_ms must not be negative, got {self.base_delay_ms}")
        if self.thread_count < 1:
            raise ValueError(f"thread_count must be at least 1, got {self.thread_count}")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError(f"deadline_seconds must be positive, got {self.deadline_seconds}")

        src_lang, sep, dst_lang = self.lang_pair.partition("|")
        if not sep or not src_lang or not dst_lang:
            raise ValueError(f"lang_pair must look like 'en|ar', got {self.lang_pair!r}")

    @property
    def src_lang(self):
        return self.lang_pair.split("|", 1)[0]

    @property
    def dst_lang(self):
        return self.lang_pair.split("|", 1)[1]

    @property
    def base_delay_seconds(self):
        return self.base_delay_ms / 1000.0

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> "TranslationConfig":
        """Build a config from a dict, accepting camelCase aliases and ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in options.items():
            name = OPTION_ALIASES.get(key, key)
            if name in known and value is not None:
                values[name] = convert_option(name, value)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_translation_config(config_path=SYSTEM_CONFIG_PATH, **overrides):
    """Load TranslationConfig from the system config file plus explicit overrides"""
    options = read_system_config(config_path)
    options.update(overrides)
    return TranslationConfig.from_dict(options)
