"""Pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class PipelineConfig:
    """Groups header-to-registry pipeline configuration."""

    registry_name: str = constants.DEFAULT_REGISTRY_NAME
    file_name: str = constants.DEFAULT_FILE_NAME
    strict: bool = True


@dataclass
class PipelineStats:
    """Timing and size statistics for each pipeline stage."""

    source_bytes: int = 0
    source_lines: int = 0
    file_name: str = ""

    # Stage timings (seconds)
    parse_time: float = 0.0
    map_time: float = 0.0
    name_time: float = 0.0
    registry_time: float = 0.0
    total_time: float = 0.0

    # Output sizes
    cursor_count: int = 0
    decl_count: int = 0
    anonymous_records: int = 0
    registry_entities: int = 0
    registry_commands: int = 0
    registry_records: int = 0

    def report(self) -> str:
        lines = [
            "═══ Pipeline Statistics ═══",
            f"  Source: {self.source_lines} lines, {self.source_bytes} bytes ({self.file_name})",
            "",
            f"  {'Stage':<20} {'Time':>10}  {'Output':>30}",
            f"  {'─' * 20} {'─' * 10}  {'─' * 30}",
        ]

        stages = [
            ("Parse", self.parse_time, f"{self.cursor_count} cursors"),
            ("Map (IR)", self.map_time, f"{self.decl_count} declarations"),
            (
                "Name anonymous",
                self.name_time,
                f"{self.anonymous_records} anonymous records",
            ),
            (
                "Build registry",
                self.registry_time,
                f"{self.registry_commands} commands, {self.registry_records} records",
            ),
        ]
        for name, t, output in stages:
            time_str = f"{t * 1000:>8.1f}ms"
            lines.append(f"  {name:<20} {time_str:>10}  {output:>30}")

        lines.append(f"  {'─' * 20} {'─' * 10}  {'─' * 30}")
        lines.append(f"  {'Total':<20} {self.total_time * 1000:>8.1f}ms")
        lines.append("")
        lines.append(f"  Registry: {self.registry_entities} entities")
        return "\n".join(lines)
