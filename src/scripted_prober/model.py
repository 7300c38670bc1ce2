"""Check configuration model consumed by the probers."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any

MIN_REGION_ID = 1
MAX_REGION_ID = 999
REGION_ID_SCALE = 1000


class InvalidRegionIdError(ValueError):
    """Raised when a region id falls outside the supported range."""


class CheckType(str, Enum):
    HTTP = "http"
    PING = "ping"
    DNS = "dns"
    TCP = "tcp"
    TRACEROUTE = "traceroute"
    MULTIHTTP = "multihttp"
    SCRIPTED = "scripted"
    BROWSER = "browser"
    GRPC = "grpc"


def get_global_id(local_id: int, region_id: int) -> int:
    """Map a per-region id to an id that is unique across regions.

    Region 0 marks a non-regionalised deployment, where local ids are
    already global.

    Raises:
        InvalidRegionIdError: If region_id is outside [1, 999] and not 0
    """
    if region_id == 0:
        return local_id
    if region_id < MIN_REGION_ID or region_id > MAX_REGION_ID:
        raise InvalidRegionIdError(
            f"region id {region_id} out of range [{MIN_REGION_ID}, {MAX_REGION_ID}]"
        )
    if local_id < 0:
        return local_id * REGION_ID_SCALE - region_id
    return local_id * REGION_ID_SCALE + region_id


def local_id_from_global(global_id: int) -> int:
    sign = -1 if global_id < 0 else 1
    return sign * (abs(global_id) // REGION_ID_SCALE)


def region_id_from_global(global_id: int) -> int:
    return abs(global_id) % REGION_ID_SCALE


@dataclass(frozen=True)
class Label:
    name: str
    value: str


@dataclass(frozen=True)
class ScriptedSettings:
    """Settings block for checks defined by a user-supplied script."""

    script: bytes


@dataclass
class CheckSettings:
    """Per-type settings. Exactly one block is populated for a valid check.

    Only the scripted block carries a concrete shape here; the remaining
    protocol blocks are opaque mappings owned by their probers.
    """

    http: dict[str, Any] | None = None
    ping: dict[str, Any] | None = None
    dns: dict[str, Any] | None = None
    tcp: dict[str, Any] | None = None
    traceroute: dict[str, Any] | None = None
    multihttp: dict[str, Any] | None = None
    scripted: ScriptedSettings | None = None
    browser: dict[str, Any] | None = None
    grpc: dict[str, Any] | None = None

    @property
    def type(self) -> CheckType:
        populated = [f.name for f in fields(self) if getattr(self, f.name) is not None]
        if len(populated) != 1:
            raise ValueError(
                f"check settings must define exactly one check type, got {populated or 'none'}"
            )
        return CheckType(populated[0])


@dataclass
class Check:
    """A check as handed to the probers by the agent."""

    id: int
    tenant_id: int
    job: str
    target: str
    settings: CheckSettings
    region_id: int = 0
    frequency: float = 60.0
    timeout: float = 10.0
    enabled: bool = True
    labels: list[Label] = field(default_factory=list)
    created: float = 0.0
    modified: float = 0.0

    @property
    def type(self) -> CheckType:
        return self.settings.type

    def global_tenant_id(self) -> int:
        """Tenant id unique across all regions, used to scope secret lookups."""
        return get_global_id(self.tenant_id, self.region_id)

    def global_id(self) -> int:
        return get_global_id(self.id, self.region_id)


def _read_script(raw: dict[str, Any], base_dir: Path | None) -> bytes:
    if "script" in raw and "script_file" in raw:
        raise ValueError("scripted settings take either 'script' or 'script_file', not both")
    if "script_file" in raw:
        path = Path(raw["script_file"])
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path
        return path.read_bytes()
    script = raw.get("script", "")
    return script.encode() if isinstance(script, str) else bytes(script)


def check_from_dict(raw: dict[str, Any], base_dir: Path | None = None) -> Check:
    """Build a Check from a plain mapping, e.g. a parsed TOML or JSON file.

    Args:
        raw: Mapping with the check fields and a [settings.<type>] table
        base_dir: Directory that relative script_file paths resolve against

    Raises:
        ValueError: If required fields are missing or settings are invalid
    """
    missing = [key for key in ("id", "tenant_id", "job", "target") if key not in raw]
    if missing:
        raise ValueError(f"check is missing required fields: {', '.join(missing)}")

    raw_settings = raw.get("settings", {})
    if not isinstance(raw_settings, dict):
        raise ValueError("check settings must be a table")

    unknown = set(raw_settings) - {t.value for t in CheckType}
    if unknown:
        raise ValueError(f"unknown check settings: {', '.join(sorted(unknown))}")

    settings_kwargs: dict[str, Any] = dict(raw_settings)
    if "scripted" in settings_kwargs:
        settings_kwargs["scripted"] = ScriptedSettings(
            script=_read_script(settings_kwargs["scripted"], base_dir)
        )

    raw_labels = raw.get("labels", {})
    if not isinstance(raw_labels, dict):
        raise ValueError("check labels must be a table of name = value pairs")
    labels = [Label(name=str(k), value=str(v)) for k, v in raw_labels.items()]

    return Check(
        id=int(raw["id"]),
        tenant_id=int(raw["tenant_id"]),
        region_id=int(raw.get("region_id", 0)),
        job=str(raw["job"]),
        target=str(raw["target"]),
        frequency=float(raw.get("frequency", 60.0)),
        timeout=float(raw.get("timeout", 10.0)),
        enabled=bool(raw.get("enabled", True)),
        labels=labels,
        settings=CheckSettings(**settings_kwargs),
        created=float(raw.get("created", 0.0)),
        modified=float(raw.get("modified", 0.0)),
    )
