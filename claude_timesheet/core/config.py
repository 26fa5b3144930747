"""Billing mappings, export profiles and config file loading."""

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

from .events import repository_name

logger = logging.getLogger(__name__)

FORMATS = ("csv", "json", "tsv")
DEFAULT_FORMAT = "csv"
DEFAULT_OUTPUT = "claude-sessions.csv"


def _section(data: dict, key: str) -> dict:
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        logger.warning("Ignoring config section %s: expected an object", key)
        return {}
    return section


def _finite_number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def infer_format(output: Path | str, explicit: str | None = None) -> str:
    """Pick a report format: explicit wins, then the output extension, then CSV."""
    if explicit:
        fmt = explicit.lower()
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported format {explicit!r} (expected one of {', '.join(FORMATS)})")
        return fmt
    suffix = Path(output).suffix.lower().lstrip(".")
    return suffix if suffix in FORMATS else DEFAULT_FORMAT


@dataclass(frozen=True)
class BillingMapping:
    """Client and project a repository's time is billed to."""

    client: str = ""
    project: str = ""


@dataclass(frozen=True)
class ExportProfile:
    """A named, pre-configured export."""

    name: str
    repositories: tuple[str, ...]
    output: Path
    format: str = DEFAULT_FORMAT


@dataclass
class TimesheetConfig:
    """Configuration built once at startup and handed to the exporter."""

    mappings: dict[str, BillingMapping] = field(default_factory=dict)
    default_client: str = ""
    hourly_rate: float | None = None
    exports: dict[str, ExportProfile] = field(default_factory=dict)
    source: Path | None = None

    def mapping_for(self, repo_name: str) -> BillingMapping:
        """Resolve client/project for a repository with the configured fallbacks."""
        mapping = self.mappings.get(repo_name)
        if mapping is None:
            folded = repo_name.casefold()
            for name, candidate in self.mappings.items():
                if name.casefold() == folded:
                    mapping = candidate
                    break
        mapping = mapping or BillingMapping()
        return BillingMapping(
            client=mapping.client or self.default_client or "",
            project=mapping.project or repo_name,
        )

    @classmethod
    def from_dict(cls, data: dict, source: Path | None = None) -> "TimesheetConfig":
        """Build a config from decoded JSON, ignoring malformed entries."""
        mappings = {}
        for repo, raw in _section(data, "mappings").items():
            if not isinstance(raw, dict):
                logger.warning("Ignoring mapping for %s: expected an object", repo)
                continue
            mappings[str(repo)] = BillingMapping(
                client=str(raw.get("client") or ""),
                project=str(raw.get("project") or ""),
            )

        exports = {}
        for name, raw in _section(data, "exports").items():
            profile = _profile_from_dict(str(name), raw)
            if profile is not None:
                exports[profile.name] = profile

        hourly_rate = _finite_number(data.get("hourlyRate"))

        return cls(
            mappings=mappings,
            default_client=str(data.get("defaultClient") or ""),
            hourly_rate=hourly_rate or None,
            exports=exports,
            source=source,
        )


def _profile_from_dict(name: str, raw: object) -> ExportProfile | None:
    if not isinstance(raw, dict):
        logger.warning("Ignoring export profile %s: expected an object", name)
        return None

    repositories = raw.get("repositories") or []
    if isinstance(repositories, str):
        repositories = [repositories]
    output = Path(raw.get("output") or f"{name}.{DEFAULT_FORMAT}").expanduser()
    try:
        fmt = infer_format(output, raw.get("format"))
    except ValueError as e:
        logger.warning("Export profile %s: %s; using %s", name, e, DEFAULT_FORMAT)
        fmt = DEFAULT_FORMAT

    return ExportProfile(
        name=name,
        repositories=tuple(str(repo) for repo in repositories),
        output=output,
        format=fmt,
    )


def load_config(candidates: list[Path]) -> TimesheetConfig:
    """Load the first readable config file among candidates.

    A file that fails to parse is reported and the next candidate is tried;
    with no usable file the defaults are returned.
    """
    for path in candidates:
        if not path.exists():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Could not parse config file %s: %s", path, e)
            continue
        if not isinstance(data, dict):
            logger.warning("Could not parse config file %s: not a JSON object", path)
            continue
        logger.debug("Loaded config from %s", path)
        return TimesheetConfig.from_dict(data, source=path)
    return TimesheetConfig()


def friendly_project_name(repo_name: str) -> str:
    """'personal-finances' -> 'Personal Finances'."""
    return " ".join(word[:1].upper() + word[1:] for word in repo_name.split("-"))


def generate_config(project_paths: list[str], default_client: str = "Development") -> dict:
    """Starter config with one mapping per discovered repository."""
    mappings: dict[str, dict] = {}
    for path in project_paths:
        name = repository_name(path)
        if not name or name in mappings:
            continue
        mappings[name] = {"client": "", "project": friendly_project_name(name)}

    return {
        "mappings": dict(sorted(mappings.items(), key=lambda item: item[0].casefold())),
        "defaultClient": default_client,
        "hourlyRate": None,
        "exports": {},
    }
