"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "string_breaker.toml"

MAX_STRING_LENGTH_CAP = 10 * 1024 * 1024
MAX_PREVIEW_LENGTH_CAP = 100_000
MAX_PREVIEW_DIMENSION_CAP = 1_000


@dataclass(slots=True, frozen=True)
class PreviewConfig:
    """Preview sizing and display settings."""

    max_length: int = 1000
    use_float: bool = True
    width: int = 80
    height: int = 20


@dataclass(slots=True, frozen=True)
class EditLimits:
    """Limits applied before opening an editing session."""

    max_string_length: int = 10_000


@dataclass(slots=True, frozen=True)
class ProvidersConfig:
    """Structural provider toggles."""

    treesitter_enabled: bool = True
    lexical_fallback_enabled: bool = True


@dataclass(slots=True, frozen=True)
class AuditConfig:
    """Audit log settings."""

    enabled: bool = True


@dataclass(slots=True, frozen=True)
class EngineConfig:
    """Fully merged configuration."""

    root: Path
    data_dir: Path
    preview: PreviewConfig
    limits: EditLimits
    providers: ProvidersConfig
    audit: AuditConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for status responses."""
        return {
            "root": str(self.root),
            "data_dir": str(self.data_dir),
            "preview": {
                "max_length": self.preview.max_length,
                "use_float": self.preview.use_float,
                "width": self.preview.width,
                "height": self.preview.height,
            },
            "limits": {
                "max_string_length": self.limits.max_string_length,
            },
            "providers": {
                "treesitter_enabled": self.providers.treesitter_enabled,
                "lexical_fallback_enabled": self.providers.lexical_fallback_enabled,
            },
            "audit": {
                "enabled": self.audit.enabled,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    max_string_length: int | None = None
    preview_max_length: int | None = None
    treesitter_enabled: bool | None = None
    lexical_fallback_enabled: bool | None = None
    audit_enabled: bool | None = None


def default_config(root: Path) -> EngineConfig:
    """Build default config for a given workspace root."""
    resolved_root = root.resolve()
    return EngineConfig(
        root=resolved_root,
        data_dir=resolved_root / ".string_breaker",
        preview=PreviewConfig(),
        limits=EditLimits(),
        providers=ProvidersConfig(),
        audit=AuditConfig(),
    )


def load_config_file(root: Path) -> dict[str, object]:
    """Load optional string_breaker.toml from the workspace root."""
    config_path = root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def merge_config(
    base: EngineConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> EngineConfig:
    """Merge defaults, config file, then CLI/startup overrides."""
    preview_payload = _get_table(file_payload, "preview")
    limits_payload = _get_table(file_payload, "limits")
    providers_payload = _get_table(file_payload, "providers")
    audit_payload = _get_table(file_payload, "audit")

    preview = PreviewConfig(
        max_length=_optional_positive_int_with_cap(
            preview_payload.get("max_length"),
            "preview.max_length",
            base.preview.max_length,
            MAX_PREVIEW_LENGTH_CAP,
        ),
        use_float=_optional_bool(
            preview_payload.get("use_float"), "preview.use_float", base.preview.use_float
        ),
        width=_optional_positive_int_with_cap(
            preview_payload.get("width"),
            "preview.width",
            base.preview.width,
            MAX_PREVIEW_DIMENSION_CAP,
        ),
        height=_optional_positive_int_with_cap(
            preview_payload.get("height"),
            "preview.height",
            base.preview.height,
            MAX_PREVIEW_DIMENSION_CAP,
        ),
    )
    limits = EditLimits(
        max_string_length=_optional_positive_int_with_cap(
            limits_payload.get("max_string_length"),
            "limits.max_string_length",
            base.limits.max_string_length,
            MAX_STRING_LENGTH_CAP,
        )
    )
    providers = ProvidersConfig(
        treesitter_enabled=_optional_bool(
            providers_payload.get("treesitter_enabled"),
            "providers.treesitter_enabled",
            base.providers.treesitter_enabled,
        ),
        lexical_fallback_enabled=_optional_bool(
            providers_payload.get("lexical_fallback_enabled"),
            "providers.lexical_fallback_enabled",
            base.providers.lexical_fallback_enabled,
        ),
    )
    audit = AuditConfig(
        enabled=_optional_bool(audit_payload.get("enabled"), "audit.enabled", base.audit.enabled)
    )

    data_dir = base.data_dir
    raw_data_dir = audit_payload.get("data_dir")
    if raw_data_dir is not None:
        if not isinstance(raw_data_dir, str) or not raw_data_dir:
            raise ValueError("Config field 'audit.data_dir' must be a non-empty string.")
        data_dir = base.root / raw_data_dir

    merged = EngineConfig(
        root=base.root,
        data_dir=data_dir,
        preview=preview,
        limits=limits,
        providers=providers,
        audit=audit,
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: EngineConfig, overrides: CliOverrides) -> EngineConfig:
    """Apply startup overrides at highest precedence."""
    preview = PreviewConfig(
        max_length=_optional_positive_int_with_cap(
            overrides.preview_max_length,
            "overrides.preview_max_length",
            config.preview.max_length,
            MAX_PREVIEW_LENGTH_CAP,
        ),
        use_float=config.preview.use_float,
        width=config.preview.width,
        height=config.preview.height,
    )
    limits = EditLimits(
        max_string_length=_optional_positive_int_with_cap(
            overrides.max_string_length,
            "overrides.max_string_length",
            config.limits.max_string_length,
            MAX_STRING_LENGTH_CAP,
        )
    )
    providers = ProvidersConfig(
        treesitter_enabled=(
            overrides.treesitter_enabled
            if overrides.treesitter_enabled is not None
            else config.providers.treesitter_enabled
        ),
        lexical_fallback_enabled=(
            overrides.lexical_fallback_enabled
            if overrides.lexical_fallback_enabled is not None
            else config.providers.lexical_fallback_enabled
        ),
    )
    audit = AuditConfig(
        enabled=(
            overrides.audit_enabled
            if overrides.audit_enabled is not None
            else config.audit.enabled
        )
    )
    data_dir = overrides.data_dir or config.data_dir
    return EngineConfig(
        root=config.root,
        data_dir=data_dir.resolve(),
        preview=preview,
        limits=limits,
        providers=providers,
        audit=audit,
    )


def load_effective_config(root: Path, overrides: CliOverrides | None = None) -> EngineConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    resolved_root = root.resolve()
    base = default_config(resolved_root)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
