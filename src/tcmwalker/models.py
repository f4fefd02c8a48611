"""Data models for tcmwalker.

Records are created once by the descriptor loader and never mutated. Each
searchable record exposes its textual fields through ``field_pairs()``;
integer columns that the views do not display as text are left out.
"""

from dataclasses import dataclass
from typing import Protocol


class Searchable(Protocol):
    """A record that can be matched by the free-text search."""

    def field_pairs(self) -> list[tuple[str, str | None]]:
        """Return (field name, text) pairs; None marks an absent optional value."""
        ...


@dataclass(slots=True, frozen=True)
class HostRecord:
    """One physical or logical host."""

    inner_ip: str
    host_name: str
    world_id: str
    zone_id: str

    def field_pairs(self) -> list[tuple[str, str | None]]:
        return [
            ("inner_ip", self.inner_ip),
            ("host_name", self.host_name),
            ("world_id", self.world_id),
            ("zone_id", self.zone_id),
        ]


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """One runnable process definition."""

    func_id: int
    func_name: str
    proc_name: str
    group_name: str
    work_path: str
    proc_type: str = "Cluster"  # 'Cluster', 'World' or 'Zone'

    def field_pairs(self) -> list[tuple[str, str | None]]:
        return [
            ("func_name", self.func_name),
            ("proc_name", self.proc_name),
            ("group_name", self.group_name),
            ("work_path", self.work_path),
            ("proc_type", self.proc_type),
        ]


@dataclass(slots=True, frozen=True)
class DeployRecord:
    """Places a process group on a host with an instance number."""

    host_id: int
    group_name: str
    inst_id: int


@dataclass(slots=True, frozen=True)
class JoinedRecord:
    """A host x process x deploy row, as shown in the all-process view."""

    host_id: int
    inner_ip: str
    host_name: str
    world_id: str
    zone_id: str
    func_id: int
    proc_type: str
    work_path: str
    func_name: str
    proc_name: str
    group_name: str
    inst_id: int

    def field_pairs(self) -> list[tuple[str, str | None]]:
        return [
            ("func_id", str(self.func_id)),
            ("inst_id", str(self.inst_id)),
            ("proc_name", self.proc_name),
            ("group_name", self.group_name),
            ("inner_ip", self.inner_ip),
            ("host_name", self.host_name),
            ("world_id", self.world_id),
            ("zone_id", self.zone_id),
            ("work_path", self.work_path),
            ("func_name", self.func_name),
        ]

    def to_host(self) -> HostRecord:
        """Project the host columns of this row."""
        return HostRecord(
            inner_ip=self.inner_ip,
            host_name=self.host_name,
            world_id=self.world_id,
            zone_id=self.zone_id,
        )
