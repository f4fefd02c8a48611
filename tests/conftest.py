"""Shared pytest fixtures for tcmwalker tests."""

from pathlib import Path

import pytest

from tcmwalker.descriptors import load_topology
from tcmwalker.models import HostRecord, JoinedRecord
from tcmwalker.store import TopologyStore

HOST_XML = """<?xml version="1.0" encoding="UTF-8"?>
<TcmCenter>
  <HostTab>
    <Host Name="Host_Main_70" InnerIP="127.0.0.1" OuterIPCount="1">
      <OuterIP>10.0.0.1</OuterIP>
    </Host>
    <Host Name="Host_DB_70" InnerIP="127.0.0.3" />
  </HostTab>
</TcmCenter>
"""

DEPLOY_XML = """<?xml version="1.0" encoding="UTF-8"?>
<TcmCenter>
  <ClusterDeploy>
    <DeloyGroup Group="TcmGroup" />
    <world ID="2">
      <zone ID="200">
        <DeloyGroup Group="GameGroup" Host="Host_Main_70" InstID="1" />
        <DeloyGroup Group="DBGroup" Host="Host_DB_70" CustomAttr="x" />
      </zone>
      <zone ID="300">
        <DeloyGroup Group="GameGroup" Host="Host_Main_70" InstID="2" />
      </zone>
    </world>
  </ClusterDeploy>
</TcmCenter>
"""

PROC_XML = """<?xml version="1.0" encoding="UTF-8"?>
<TcmCenter>
  <cluster WorkPath="/data/tcm" AutoTimeGap="5">
    <Proc FuncName="tcmagent" FuncID="1" Flag="1" />
    <world Isolated="1">
      <Proc FuncName="gamesvr" FuncID="201" ProcName="gamesvrd" WorkPath="game" Flag="1" />
      <zone Isolated="1">
        <Proc FuncName="dbsvr" FuncID="301" WorkPath="db" Flag="1" />
      </zone>
    </world>
  </cluster>
  <ProcGroup Name="TcmGroup" Layer="Cluster">
    <Proc FuncName="tcmagent" />
  </ProcGroup>
  <ProcGroup Name="GameGroup" Layer="Zone">
    <Proc FuncName="gamesvr" />
  </ProcGroup>
  <ProcGroup Name="DBGroup" Layer="Zone">
    <Proc FuncName="dbsvr" />
  </ProcGroup>
</TcmCenter>
"""


def write_descriptors(directory: Path, host=HOST_XML, deploy=DEPLOY_XML, proc=PROC_XML) -> Path:
    """Write the three descriptor files into a directory."""
    (directory / "host.xml").write_text(host, encoding="utf-8")
    (directory / "procdeploy.xml").write_text(deploy, encoding="utf-8")
    (directory / "proc.xml").write_text(proc, encoding="utf-8")
    return directory


@pytest.fixture
def config_dir(tmp_path):
    """A config directory holding valid descriptor files."""
    directory = tmp_path / "config"
    directory.mkdir()
    return write_descriptors(directory)


@pytest.fixture
def store(config_dir):
    """An in-memory store loaded from the sample descriptors."""
    topology = TopologyStore(":memory:")
    topology.create_schema()
    load_topology(config_dir, topology)
    yield topology
    topology.close()


def make_host(inner_ip="127.0.0.1", host_name="Host_Main_70", world_id="4", zone_id="70"):
    return HostRecord(inner_ip=inner_ip, host_name=host_name, world_id=world_id, zone_id=zone_id)


def make_joined(**overrides) -> JoinedRecord:
    values = dict(
        host_id=1,
        inner_ip="127.0.0.1",
        host_name="Host_Main_70",
        world_id="2",
        zone_id="200",
        func_id=201,
        proc_type="World",
        work_path="/data/tcm/game",
        func_name="gamesvr",
        proc_name="gamesvrd",
        group_name="GameGroup",
        inst_id=1,
    )
    values.update(overrides)
    return JoinedRecord(**values)
