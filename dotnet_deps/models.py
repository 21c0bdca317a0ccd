"""Data models for project records and engine configuration."""

from __future__ import annotations

import enum
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from dotnet_deps.errors import ValidationError

MIN_PARALLEL_BUILDS = 1
MAX_PARALLEL_BUILDS = 16


class ProjectKind(enum.Enum):
    CSHARP = "csharp"
    FSHARP = "fsharp"
    VBNET = "vbnet"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> ProjectKind:
        """Map a kind string (or alias) to a variant; unrecognized -> UNKNOWN."""
        if isinstance(value, ProjectKind):
            return value
        if not value:
            return cls.UNKNOWN
        return _KIND_ALIASES.get(str(value).strip().lower(), cls.UNKNOWN)

    @classmethod
    def from_path(cls, path: str | None) -> ProjectKind:
        if not path:
            return cls.UNKNOWN
        _, suffix = os.path.splitext(str(path).replace("\\", "/"))
        return _KIND_ALIASES.get(suffix.lower(), cls.UNKNOWN)


_KIND_ALIASES: dict[str, ProjectKind] = {
    "csharp": ProjectKind.CSHARP,
    "cs": ProjectKind.CSHARP,
    "c#": ProjectKind.CSHARP,
    ".csproj": ProjectKind.CSHARP,
    "fsharp": ProjectKind.FSHARP,
    "fs": ProjectKind.FSHARP,
    "f#": ProjectKind.FSHARP,
    ".fsproj": ProjectKind.FSHARP,
    "vbnet": ProjectKind.VBNET,
    "vb": ProjectKind.VBNET,
    "vb.net": ProjectKind.VBNET,
    ".vbproj": ProjectKind.VBNET,
    "unknown": ProjectKind.UNKNOWN,
}


@dataclass(frozen=True)
class PackageReference:
    """A NuGet package reference. Identity is the (name, version) pair."""
    name: str
    version: str = ""
    include_assets: str | None = field(default=None, compare=False)
    exclude_assets: str | None = field(default=None, compare=False)

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.version)

    @classmethod
    def from_value(cls, value: Any) -> PackageReference:
        if isinstance(value, PackageReference):
            return value
        if isinstance(value, Mapping):
            name = value.get("name")
            if not isinstance(name, str) or not name.strip():
                raise ValidationError(f"Package reference is missing a name: {value!r}")
            version = value.get("version") or ""
            if not isinstance(version, str):
                raise ValidationError(f"Package version must be a string: {value!r}")
            return cls(
                name=name.strip(),
                version=version.strip(),
                include_assets=value.get("include_assets"),
                exclude_assets=value.get("exclude_assets"),
            )
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls.from_value({"name": value[0], "version": value[1]})
        raise ValidationError(f"Malformed package reference: {value!r}")


@dataclass
class ProjectRecord:
    """A project as handed over by the solution/project parser."""
    path: str | None
    name: str = ""
    kind: ProjectKind | str | None = None
    frameworks: list[str] = field(default_factory=list)
    package_references: list[PackageReference] = field(default_factory=list)
    project_references: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.path is not None:
            self.path = str(self.path)
        # No kind given: infer it from the project file extension.
        if self.kind is None:
            self.kind = ProjectKind.from_path(self.path)
        else:
            self.kind = ProjectKind.parse(self.kind)
        if not self.name and self.path:
            self.name = Path(self.path.replace("\\", "/")).stem
        self.package_references = [
            PackageReference.from_value(p) for p in self.package_references
        ]
        self.project_references = [str(p) for p in self.project_references]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProjectRecord:
        """Build a record from a loose mapping (parser output, JSON input)."""
        if not isinstance(data, Mapping):
            raise ValidationError(f"Project record must be a mapping, got {type(data).__name__}")

        path = data.get("path")
        if path is not None and not isinstance(path, (str, os.PathLike)):
            raise ValidationError(f"Project path must be a string: {path!r}")

        frameworks = data.get("frameworks")
        if frameworks is None:
            # Single-target manifests only carry "framework".
            single = data.get("framework")
            frameworks = [single] if single else []
        elif isinstance(frameworks, str):
            frameworks = [f for f in frameworks.split(";") if f]
        if not all(isinstance(f, str) for f in frameworks):
            raise ValidationError(f"Frameworks must be strings: {frameworks!r}")

        project_refs = []
        for ref in data.get("project_references") or []:
            if isinstance(ref, Mapping):
                ref = ref.get("path")
            if not isinstance(ref, str) or not ref.strip():
                raise ValidationError(f"Malformed project reference in {path!r}: {ref!r}")
            project_refs.append(ref)

        return cls(
            path=path,
            name=data.get("name") or "",
            kind=data.get("kind"),
            frameworks=list(frameworks),
            package_references=list(data.get("package_references") or []),
            project_references=project_refs,
        )


@dataclass
class GraphConfig:
    """Configuration for a dependency graph instance."""
    base_dir: Path = field(default_factory=Path.cwd)
    case_insensitive: bool | None = None  # None -> detect from platform
    max_parallel_builds: int = 4

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir)
        if not MIN_PARALLEL_BUILDS <= self.max_parallel_builds <= MAX_PARALLEL_BUILDS:
            raise ValidationError(
                f"max_parallel_builds must be between {MIN_PARALLEL_BUILDS} "
                f"and {MAX_PARALLEL_BUILDS}, got {self.max_parallel_builds}"
            )

    @property
    def fold_case(self) -> bool:
        if self.case_insensitive is not None:
            return self.case_insensitive
        return sys.platform.startswith(("win", "cygwin", "darwin"))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> GraphConfig:
        """Read DOTNET_DEPS_* overrides; explicit keyword overrides win."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        raw_parallel = env.get("DOTNET_DEPS_MAX_PARALLEL")
        if raw_parallel:
            try:
                values["max_parallel_builds"] = int(raw_parallel)
            except ValueError:
                raise ValidationError(
                    f"DOTNET_DEPS_MAX_PARALLEL must be an integer, got {raw_parallel!r}"
                ) from None

        raw_case = env.get("DOTNET_DEPS_CASE_INSENSITIVE")
        if raw_case:
            values["case_insensitive"] = raw_case.strip().lower() in ("1", "true", "yes", "on")

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
