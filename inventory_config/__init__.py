"""
inventory_config -- single public entrypoint for analytics configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files directly.  YAML loading is internal tooling.

Architecture position:
    Configuration -- YAML-driven thresholds, validated on load.
    This package sits above ``inventory_kernel`` and ``inventory_engines``
    and below ``inventory_services``.  Engines MUST NEVER import from
    ``inventory_config``; ``bridges`` translates configuration into
    ``EngineParameters``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Validation on load: an invalid set never leaves this package.
    - Deterministic checksum: the same YAML always yields the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ConfigurationError`` / ``InvalidBandsError`` -- semantic validation
      failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``INVENTORY_CONFIG_TRACE`` log entry with config_id, version and
    checksum, tying every analysis back to the thresholds that drove it.
"""

from __future__ import annotations

from pathlib import Path

from inventory_config.loader import load_yaml_file, parse_configuration
from inventory_config.schema import AnalyticsConfigurationSet
from inventory_config.validator import raise_if_invalid
from inventory_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | None = None) -> AnalyticsConfigurationSet:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a YAML configuration file.
            Defaults to inventory_config/defaults.yaml.

    Returns:
        A validated ``AnalyticsConfigurationSet``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = parse_configuration(load_yaml_file(path))
    raise_if_invalid(config)

    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
        },
    )
    return config


__all__ = [
    "AnalyticsConfigurationSet",
    "DEFAULT_CONFIG_PATH",
    "get_active_config",
]
