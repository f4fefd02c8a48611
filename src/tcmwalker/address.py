"""Compiler for the positional ``world.zone.proc.inst`` address syntax.

An address has exactly four segments; each is either the wildcard ``*`` or an
opaque literal. The compiler turns it into a SQL join/filter over the hosts,
procs and deploy tables. It never validates literals: they are substituted
verbatim and any resulting SQL error is the store's to report.
"""

from dataclasses import dataclass

from tcmwalker.config import ADDRESS_SEGMENTS, HOSTS_TABLE, SEPARATOR, WILDCARD


@dataclass(slots=True, frozen=True)
class QueryAddress:
    """A normalized four-segment address."""

    world_id: str
    zone_id: str
    proc_id: str
    inst_id: str


def is_wildcard(segment: str) -> bool:
    """Check whether a segment matches anything at its position."""
    return segment == WILDCARD


def parse_address(raw: str) -> QueryAddress:
    """
    Normalize a raw pattern into a QueryAddress.

    A single trailing separator is stripped, missing segments are padded with
    the wildcard, and segments past the fourth are ignored.
    """
    if raw.endswith(SEPARATOR):
        raw = raw[: -len(SEPARATOR)]
    segments = raw.split(SEPARATOR)
    if len(segments) < ADDRESS_SEGMENTS:
        segments.extend([WILDCARD] * (ADDRESS_SEGMENTS - len(segments)))
    world_id, zone_id, proc_id, inst_id = segments[:ADDRESS_SEGMENTS]
    return QueryAddress(world_id=world_id, zone_id=zone_id, proc_id=proc_id, inst_id=inst_id)


def _procs_join(address: QueryAddress) -> str:
    if is_wildcard(address.proc_id):
        return " JOIN procs"
    return (
        " JOIN procs ON procs.proc_group_name = deploy.group_name"
        f" and procs.func_id = '{address.proc_id}'"
    )


def _deploy_join(address: QueryAddress) -> str:
    world, zone = address.world_id, address.zone_id
    if not is_wildcard(world) and not is_wildcard(zone):
        return f" JOIN deploy ON hosts.world_id = '{world}' and hosts.zone_id = '{zone}'"
    if not is_wildcard(world):
        return f" JOIN deploy ON hosts.world_id = '{world}'"
    if not is_wildcard(zone):
        return f" JOIN deploy ON hosts.zone_id = '{zone}'"
    return " JOIN deploy"


def _where_clause(address: QueryAddress) -> str:
    if is_wildcard(address.inst_id):
        return " WHERE hosts.id = deploy.host_id"
    return f" WHERE deploy.inst_id = '{address.inst_id}' and hosts.id = deploy.host_id"


def compile_address(raw: str, table: str = HOSTS_TABLE) -> str:
    """
    Compile an address pattern into a SQL query.

    >>> compile_address("2.*.*.*")
    "select * from hosts JOIN procs JOIN deploy ON hosts.world_id = '2' WHERE hosts.id = deploy.host_id"
    """
    address = parse_address(raw)
    return (
        f"select * from {table}"
        + _procs_join(address)
        + _deploy_join(address)
        + _where_clause(address)
    )
