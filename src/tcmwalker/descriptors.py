"""Loading of the TCM XML descriptor files into the record store.

Three files live in the config directory:

* ``host.xml`` maps host names to inner IP addresses.
* ``proc.xml`` defines process functions, their work paths and groups.
* ``procdeploy.xml`` places process groups on hosts per world and zone.

Any problem here is fatal: the session only starts on a complete topology.
"""

import logging
import os
import xml.etree.ElementTree as ET
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from tcmwalker.config import (
    BUILTIN_HOST_IP,
    BUILTIN_HOST_NAME,
    DEPLOY_DESCRIPTOR,
    DESCRIPTOR_FILES,
    HOST_DESCRIPTOR,
    PROC_DESCRIPTOR,
)
from tcmwalker.exceptions import DescriptorError
from tcmwalker.models import DeployRecord, HostRecord, ProcessRecord
from tcmwalker.store import TopologyStore

logger = logging.getLogger(__name__)

# Element name as spelled in the deploy descriptors
DEPLOY_GROUP_TAG = "DeloyGroup"
CLUSTER_LEVEL_ID = "0"
DEFAULT_WORK_PATH = "./"


class HostAliasTable(Mapping):
    """
    Immutable host name to inner IP lookup.

    Built once from ``host.xml`` before anything else runs, then handed to
    the loader. The built-in ``TcmHost`` alias always resolves to localhost,
    even when ``host.xml`` declares it.
    """

    def __init__(self, aliases: Mapping[str, str]) -> None:
        table = dict(aliases)
        table[BUILTIN_HOST_NAME] = BUILTIN_HOST_IP
        self._table = MappingProxyType(table)

    def __getitem__(self, name: str) -> str:
        return self._table[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def resolve(self, name: str, path: Path | None = None) -> str:
        """Resolve a host name, raising DescriptorError for unknown hosts."""
        try:
            return self._table[name]
        except KeyError:
            raise DescriptorError(f"Unknown host '{name}'", path) from None

    @classmethod
    def from_file(cls, path: Path) -> "HostAliasTable":
        """Build the table from a ``host.xml`` descriptor."""
        root = _parse(path)
        aliases = {}
        for host in root.iter("Host"):
            name = _required(host, "Name", path)
            # Later entries win when a name is declared twice
            aliases[name] = _required(host, "InnerIP", path)
        return cls(aliases)


@dataclass(slots=True, frozen=True)
class DeployPlacement:
    """A deploy group resolved to a host placement, before host ids exist."""

    host_name: str
    inner_ip: str
    world_id: str
    zone_id: str
    group_name: str
    inst_id: int


def _parse(path: Path) -> ET.Element:
    try:
        return ET.parse(path).getroot()
    except FileNotFoundError:
        raise DescriptorError("Config file not exists!", path) from None
    except ET.ParseError as e:
        raise DescriptorError(f"Malformed XML: {e}", path) from e


def _required(element: ET.Element, attr: str, path: Path) -> str:
    value = element.get(attr)
    if value is None:
        raise DescriptorError(f"<{element.tag}> is missing attribute '{attr}'", path)
    return value


def _int_attr(element: ET.Element, attr: str, path: Path, default: int | None = None) -> int:
    value = element.get(attr)
    if value is None:
        if default is None:
            raise DescriptorError(f"<{element.tag}> is missing attribute '{attr}'", path)
        return default
    try:
        return int(value)
    except ValueError:
        raise DescriptorError(
            f"<{element.tag}> attribute {attr}='{value}' is not an integer", path
        ) from None


def check_descriptors(config_path: Path) -> None:
    """Fail early if any descriptor file is missing."""
    for name in DESCRIPTOR_FILES:
        path = config_path / name
        if not path.exists():
            raise DescriptorError("Config file not exists!", path)


def collect_placements(path: Path, aliases: HostAliasTable) -> list[DeployPlacement]:
    """
    Read every deploy group from ``procdeploy.xml``.

    Cluster-level groups sit in world/zone ``0``, default to the built-in
    host and to instance 0. Zone-level groups must name a host and default to
    instance 1.
    """
    root = _parse(path)
    cluster = root if root.tag == "ClusterDeploy" else root.find("ClusterDeploy")
    if cluster is None:
        raise DescriptorError("Missing <ClusterDeploy>", path)

    placements = []
    for group in cluster.findall(DEPLOY_GROUP_TAG):
        host_name = group.get("Host", BUILTIN_HOST_NAME)
        placements.append(
            DeployPlacement(
                host_name=host_name,
                inner_ip=aliases.resolve(host_name, path),
                world_id=CLUSTER_LEVEL_ID,
                zone_id=CLUSTER_LEVEL_ID,
                group_name=_required(group, "Group", path),
                inst_id=_int_attr(group, "InstID", path, default=0),
            )
        )

    for world in cluster.findall("world"):
        world_id = _required(world, "ID", path)
        for zone in world.findall("zone"):
            zone_id = _required(zone, "ID", path)
            for group in zone.findall(DEPLOY_GROUP_TAG):
                host_name = _required(group, "Host", path)
                placements.append(
                    DeployPlacement(
                        host_name=host_name,
                        inner_ip=aliases.resolve(host_name, path),
                        world_id=world_id,
                        zone_id=zone_id,
                        group_name=_required(group, "Group", path),
                        inst_id=_int_attr(group, "InstID", path, default=1),
                    )
                )
    return placements


def collect_hosts(placements: list[DeployPlacement]) -> list[HostRecord]:
    """Derive the distinct host records, in first-seen order."""
    hosts: dict[HostRecord, None] = {}
    for placement in placements:
        host = HostRecord(
            inner_ip=placement.inner_ip,
            host_name=placement.host_name,
            world_id=placement.world_id,
            zone_id=placement.zone_id,
        )
        hosts.setdefault(host, None)
    return list(hosts)


def _join_work_path(base: str | None, work_path: str | None) -> str:
    return os.path.join(base or DEFAULT_WORK_PATH, work_path or DEFAULT_WORK_PATH)


def collect_procs(path: Path) -> list[ProcessRecord]:
    """
    Read every process definition from ``proc.xml``.

    Procs may sit directly in a ``<cluster>``, in a ``<world>`` or in a
    ``<zone>`` of a world; their work path is joined under the cluster's.
    """
    root = _parse(path)

    group_of: dict[str, str] = {}
    for group in root.iter("ProcGroup"):
        group_name = _required(group, "Name", path)
        for proc in group.findall("Proc"):
            group_of[_required(proc, "FuncName", path)] = group_name

    def make(proc: ET.Element, base: str | None, layer: str) -> ProcessRecord:
        func_name = _required(proc, "FuncName", path)
        if func_name not in group_of:
            raise DescriptorError(f"Proc '{func_name}' belongs to no ProcGroup", path)
        return ProcessRecord(
            func_id=_int_attr(proc, "FuncID", path),
            func_name=func_name,
            proc_name=proc.get("ProcName", func_name),
            group_name=group_of[func_name],
            work_path=_join_work_path(base, proc.get("WorkPath")),
            proc_type=layer,
        )

    procs: dict[int, ProcessRecord] = {}

    def add(record: ProcessRecord) -> None:
        if record.func_id in procs:
            logger.debug("Skipping duplicate FuncID %d (%s)", record.func_id, record.func_name)
            return
        procs[record.func_id] = record

    for cluster in root.iter("cluster"):
        base = cluster.get("WorkPath")
        for element in cluster:
            if element.tag == "Proc":
                add(make(element, base, "Cluster"))
            elif element.tag == "world":
                for world_element in element:
                    if world_element.tag == "Proc":
                        add(make(world_element, base, "World"))
                    elif world_element.tag == "zone":
                        for zone_proc in world_element.findall("Proc"):
                            add(make(zone_proc, base, "Zone"))
    return list(procs.values())


def load_topology(config_path: Path, store: TopologyStore) -> HostAliasTable:
    """
    Parse the descriptors in ``config_path`` and fill the store.

    Returns:
        The host alias table used to resolve host names.

    Raises:
        DescriptorError: A descriptor is missing or malformed.
    """
    config_path = Path(config_path)
    check_descriptors(config_path)

    aliases = HostAliasTable.from_file(config_path / HOST_DESCRIPTOR)
    deploy_path = config_path / DEPLOY_DESCRIPTOR
    placements = collect_placements(deploy_path, aliases)

    hosts = collect_hosts(placements)
    store.insert_hosts(hosts)
    logger.info("Loaded %d hosts", len(hosts))

    procs = collect_procs(config_path / PROC_DESCRIPTOR)
    store.insert_procs(procs)
    logger.info("Loaded %d procs", len(procs))

    deploys = []
    for placement in placements:
        host_id = store.get_host_id(placement.inner_ip, placement.world_id, placement.zone_id)
        if host_id is None:
            raise DescriptorError(f"No host row for {placement.inner_ip}", deploy_path)
        deploys.append(
            DeployRecord(
                host_id=host_id, group_name=placement.group_name, inst_id=placement.inst_id
            )
        )
    store.insert_deploys(deploys)
    logger.info("Loaded %d deploy placements", len(deploys))

    return aliases
