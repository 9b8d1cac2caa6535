"""
Config loading and views for mxm-abnchecker.

- load_abnchecker_config(...): packaged defaults + user YAML + overrides
- abr_view(cfg):          source-level settings for the ABN register
- abr_http_view(cfg):     outbound HTTP settings (headers, timeout, proxy, TLS)
- abr_cache_view(cfg):    record cache settings
- load_checker_settings(cfg): typed `CheckerSettings` for the orchestrator
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping, cast

import yaml
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from mxm.abnchecker.common.caching import (
    CachePolicy,
    resolve_cache_dir,
    resolve_ttl_seconds,
)
from mxm.abnchecker.config.settings import CheckerSettings, ProxySettings

SOURCE_ABR = "abr"
DEFAULTS_PATH = Path(__file__).with_name("default.yaml")


class ConfigError(RuntimeError):
    pass


def _packaged_defaults() -> DictConfig:
    cfg = OmegaConf.load(DEFAULTS_PATH)
    if not isinstance(cfg, DictConfig):
        raise ConfigError("Packaged default.yaml must contain a mapping")
    return cfg


def load_abnchecker_config(
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> DictConfig:
    """Load the merged, resolved, read-only config tree.

    Precedence (lowest to highest): packaged `default.yaml`, `config_path`,
    `overrides`.

    Raises:
      FileNotFoundError: If `config_path` is given but does not exist.
      ConfigError: If the user file is not valid YAML or not a mapping, or if
        merging or interpolation fails.
    """
    layers: list[DictConfig] = [_packaged_defaults()]

    if config_path is not None:
        if not config_path.is_file():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        try:
            user_cfg = OmegaConf.load(config_path)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(user_cfg, DictConfig):
            raise ConfigError(f"Config file must contain a mapping: {config_path}")
        layers.append(user_cfg)

    try:
        if overrides:
            layers.append(OmegaConf.create(dict(overrides)))
        merged = cast(DictConfig, OmegaConf.merge(*layers))
        OmegaConf.resolve(merged)
    except OmegaConfBaseException as e:
        raise ConfigError(f"Cannot build config: {e}") from e
    OmegaConf.set_readonly(merged, True)
    return merged


def _view(cfg: DictConfig, path: str) -> DictConfig:
    selected = OmegaConf.select(cfg, path)
    if selected is None:
        raise KeyError(f"Config path not found: '{path}'")
    if not isinstance(selected, DictConfig):
        raise TypeError(
            f"Config path '{path}' must resolve to a mapping, "
            f"got {type(selected).__name__}"
        )
    OmegaConf.set_readonly(selected, True)
    return selected


def abr_view(cfg: DictConfig) -> DictConfig:
    """Read-only view rooted at `sources.abr`."""
    return _view(cfg, f"sources.{SOURCE_ABR}")


def abr_http_view(cfg: DictConfig) -> DictConfig:
    """Read-only view rooted at `sources.abr.http`."""
    return _view(cfg, f"sources.{SOURCE_ABR}.http")


def abr_cache_view(cfg: DictConfig) -> DictConfig:
    """Read-only view rooted at `sources.abr.cache`."""
    return _view(cfg, f"sources.{SOURCE_ABR}.cache")


def _must_have(d: Any, path: str, keys: Iterable[str]) -> None:
    missing = [k for k in keys if not hasattr(d, k)]
    if missing:
        raise ConfigError(f"Missing keys at {path}: {', '.join(missing)}")


def ensure_abr_config(cfg: DictConfig) -> None:
    try:
        abr = abr_view(cfg)
        http = abr_http_view(cfg)
        cache = abr_cache_view(cfg)
    except (KeyError, TypeError) as e:
        raise ConfigError(str(e)) from e

    _must_have(abr, "sources.abr", ("lookup_url", "not_found_markers"))
    _must_have(
        http,
        "sources.abr.http",
        (
            "referer",
            "user_agent",
            "accept",
            "accept_language",
            "timeout",
            "verify_tls",
        ),
    )
    _must_have(cache, "sources.abr.cache", ("enabled", "dir", "ttl_seconds"))


def _proxy_from_view(http: DictConfig) -> ProxySettings | None:
    node = getattr(http, "proxy", None)
    if node is None:
        return None
    address = getattr(node, "address", None)
    if not address:
        return None
    credentials = getattr(node, "credentials", None)
    return ProxySettings(
        address=str(address),
        scheme=str(getattr(node, "scheme", None) or "http"),
        credentials=str(credentials) if credentials else None,
    )


def load_cache_policy(cfg: DictConfig) -> CachePolicy:
    """Resolve `sources.abr.cache` into a `CachePolicy`."""
    cache = abr_cache_view(cfg)
    return CachePolicy(
        enabled=bool(cache.enabled),
        cache_dir=resolve_cache_dir(cache.dir),
        ttl_seconds=resolve_ttl_seconds(cache.ttl_seconds),
    )


def load_checker_settings(cfg: DictConfig) -> CheckerSettings:
    """Build the typed settings value passed to `AbnChecker`.

    Raises:
      ConfigError: If required keys are missing (see `ensure_abr_config`).
      ValueError: If the proxy scheme or cache TTL is invalid.
    """
    ensure_abr_config(cfg)
    abr = abr_view(cfg)
    http = abr_http_view(cfg)
    return CheckerSettings(
        lookup_url=str(abr.lookup_url),
        referer=str(http.referer),
        user_agent=str(http.user_agent),
        accept=str(http.accept),
        accept_language=str(http.accept_language),
        timeout=float(http.timeout),
        verify_tls=bool(http.verify_tls),
        proxy=_proxy_from_view(http),
        cache=load_cache_policy(cfg),
        not_found_markers=tuple(str(m) for m in abr.not_found_markers),
    )


__all__ = [
    "SOURCE_ABR",
    "ConfigError",
    "load_abnchecker_config",
    "abr_view",
    "abr_http_view",
    "abr_cache_view",
    "ensure_abr_config",
    "load_cache_policy",
    "load_checker_settings",
]
