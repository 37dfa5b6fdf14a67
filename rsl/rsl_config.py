"""
Runtime configuration.

Settings come from an optional YAML file, then ``RSL_*`` environment
variables. Keys may be written with ``-`` or ``_``.
"""
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_BOOTSTRAP = Path(__file__).parent / "init.rsl"

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class RSLConfig:
    working_dir: Path = field(default_factory=Path.cwd)
    http_timeout: float = 5.0
    http_retries: int = 0
    follow_redirects: bool = True
    rpc_timeout: Optional[float] = None
    bootstrap: Path = DEFAULT_BOOTSTRAP
    load_bootstrap: bool = True
    debug: bool = False

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> 'RSLConfig':
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = str(key).replace("-", "_")
            if name not in known:
                raise ValueError(f"unknown configuration key: {key}")
            values[name] = value
        for name in ("working_dir", "bootstrap"):
            if name in values and values[name] is not None:
                values[name] = Path(values[name]).expanduser()
        config = cls(**values)
        config.validate()
        return config

    def validate(self):
        if self.http_timeout <= 0:
            raise ValueError("http_timeout must be positive")
        if self.http_retries < 0:
            raise ValueError("http_retries must not be negative")
        if self.rpc_timeout is not None and self.rpc_timeout <= 0:
            raise ValueError("rpc_timeout must be positive")


def load_config(path: Optional[os.PathLike] = None, environ: Optional[Dict[str, str]] = None) -> RSLConfig:
    """Build an ``RSLConfig`` from a YAML file (if given) plus environment overrides."""
    data: Dict[str, Any] = {}
    if path is not None:
        text = Path(path).read_text(encoding="utf-8")
        loaded = yaml.safe_load(text)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        data.update(loaded)

    env = os.environ if environ is None else environ
    if "RSL_DEBUG" in env:
        data["debug"] = env["RSL_DEBUG"].strip().lower() in _TRUE
    if "RSL_HTTP_TIMEOUT" in env:
        try:
            data["http_timeout"] = float(env["RSL_HTTP_TIMEOUT"])
        except ValueError:
            raise ValueError(f"RSL_HTTP_TIMEOUT is not a number: {env['RSL_HTTP_TIMEOUT']!r}")
    return RSLConfig.from_mapping(data)
