"""Tests for descriptor loading."""

import pytest

from tcmwalker.descriptors import (
    DeployPlacement,
    HostAliasTable,
    check_descriptors,
    collect_hosts,
    collect_placements,
    collect_procs,
    load_topology,
)
from tcmwalker.exceptions import DescriptorError
from tcmwalker.models import HostRecord, ProcessRecord
from tcmwalker.store import TopologyStore

from conftest import DEPLOY_XML, HOST_XML, write_descriptors


@pytest.fixture
def aliases(config_dir):
    return HostAliasTable.from_file(config_dir / "host.xml")


class TestHostAliasTable:
    """Tests for the host alias table."""

    def test_reads_hosts(self, aliases):
        assert aliases["Host_Main_70"] == "127.0.0.1"
        assert aliases["Host_DB_70"] == "127.0.0.3"

    def test_builtin_host(self, aliases):
        assert aliases["TcmHost"] == "127.0.0.1"
        assert len(aliases) == 3

    def test_builtin_host_cannot_be_overridden(self):
        table = HostAliasTable({"TcmHost": "10.0.0.9", "Host_DB_70": "127.0.0.3"})

        assert table["TcmHost"] == "127.0.0.1"
        assert table["Host_DB_70"] == "127.0.0.3"

    def test_is_read_only(self, aliases):
        with pytest.raises(TypeError):
            aliases["Host_New"] = "10.0.0.1"

    def test_unknown_host(self, aliases):
        with pytest.raises(DescriptorError, match="Unknown host 'Host_X'"):
            aliases.resolve("Host_X")

    def test_missing_inner_ip(self, tmp_path):
        path = tmp_path / "host.xml"
        path.write_text('<TcmCenter><HostTab><Host Name="A" /></HostTab></TcmCenter>')

        with pytest.raises(DescriptorError, match="InnerIP"):
            HostAliasTable.from_file(path)


class TestPlacements:
    """Tests for reading procdeploy.xml."""

    def test_cluster_and_zone_groups(self, config_dir, aliases):
        placements = collect_placements(config_dir / "procdeploy.xml", aliases)

        assert placements == [
            DeployPlacement("TcmHost", "127.0.0.1", "0", "0", "TcmGroup", 0),
            DeployPlacement("Host_Main_70", "127.0.0.1", "2", "200", "GameGroup", 1),
            DeployPlacement("Host_DB_70", "127.0.0.3", "2", "200", "DBGroup", 1),
            DeployPlacement("Host_Main_70", "127.0.0.1", "2", "300", "GameGroup", 2),
        ]

    def test_cluster_deploy_as_root(self, tmp_path, aliases):
        path = tmp_path / "procdeploy.xml"
        path.write_text('<ClusterDeploy><DeloyGroup Group="TcmGroup" InstID="3" /></ClusterDeploy>')

        placements = collect_placements(path, aliases)

        assert [(p.group_name, p.inst_id) for p in placements] == [("TcmGroup", 3)]

    def test_zone_group_requires_host(self, tmp_path, aliases):
        path = tmp_path / "procdeploy.xml"
        path.write_text(
            '<ClusterDeploy><world ID="1"><zone ID="1">'
            '<DeloyGroup Group="GameGroup" /></zone></world></ClusterDeploy>'
        )

        with pytest.raises(DescriptorError, match="Host"):
            collect_placements(path, aliases)

    def test_unknown_host_reference(self, tmp_path, aliases):
        path = tmp_path / "procdeploy.xml"
        path.write_text(DEPLOY_XML.replace('Host="Host_DB_70"', 'Host="Host_Gone"'))

        with pytest.raises(DescriptorError, match="Host_Gone"):
            collect_placements(path, aliases)

    def test_bad_instance_id(self, tmp_path, aliases):
        path = tmp_path / "procdeploy.xml"
        path.write_text(DEPLOY_XML.replace('InstID="2"', 'InstID="two"'))

        with pytest.raises(DescriptorError, match="not an integer"):
            collect_placements(path, aliases)

    def test_missing_cluster_deploy(self, tmp_path, aliases):
        path = tmp_path / "procdeploy.xml"
        path.write_text("<TcmCenter />")

        with pytest.raises(DescriptorError, match="ClusterDeploy"):
            collect_placements(path, aliases)

    def test_hosts_are_distinct(self, config_dir, aliases):
        placements = collect_placements(config_dir / "procdeploy.xml", aliases)

        hosts = collect_hosts(placements + placements)

        assert hosts == [
            HostRecord("127.0.0.1", "TcmHost", "0", "0"),
            HostRecord("127.0.0.1", "Host_Main_70", "2", "200"),
            HostRecord("127.0.0.3", "Host_DB_70", "2", "200"),
            HostRecord("127.0.0.1", "Host_Main_70", "2", "300"),
        ]


class TestProcs:
    """Tests for reading proc.xml."""

    def test_layers_and_paths(self, config_dir):
        procs = collect_procs(config_dir / "proc.xml")

        assert procs == [
            ProcessRecord(1, "tcmagent", "tcmagent", "TcmGroup", "/data/tcm/./", "Cluster"),
            ProcessRecord(201, "gamesvr", "gamesvrd", "GameGroup", "/data/tcm/game", "World"),
            ProcessRecord(301, "dbsvr", "dbsvr", "DBGroup", "/data/tcm/db", "Zone"),
        ]

    def test_cluster_without_work_path(self, tmp_path):
        path = tmp_path / "proc.xml"
        path.write_text(
            '<TcmCenter><cluster><Proc FuncName="a" FuncID="7" /></cluster>'
            '<ProcGroup Name="G"><Proc FuncName="a" /></ProcGroup></TcmCenter>'
        )

        (proc,) = collect_procs(path)

        assert proc.work_path == "././"

    def test_duplicate_func_id_keeps_first(self, tmp_path):
        path = tmp_path / "proc.xml"
        path.write_text(
            '<TcmCenter><cluster WorkPath="/w">'
            '<Proc FuncName="a" FuncID="7" /><Proc FuncName="b" FuncID="7" />'
            '</cluster><ProcGroup Name="G"><Proc FuncName="a" /><Proc FuncName="b" />'
            "</ProcGroup></TcmCenter>"
        )

        procs = collect_procs(path)

        assert [p.func_name for p in procs] == ["a"]

    def test_proc_without_group(self, tmp_path):
        path = tmp_path / "proc.xml"
        path.write_text(
            '<TcmCenter><cluster><Proc FuncName="lonely" FuncID="5" /></cluster></TcmCenter>'
        )

        with pytest.raises(DescriptorError, match="lonely"):
            collect_procs(path)

    def test_proc_without_func_id(self, tmp_path):
        path = tmp_path / "proc.xml"
        path.write_text(
            '<TcmCenter><cluster><Proc FuncName="a" /></cluster>'
            '<ProcGroup Name="G"><Proc FuncName="a" /></ProcGroup></TcmCenter>'
        )

        with pytest.raises(DescriptorError, match="FuncID"):
            collect_procs(path)


class TestLoadTopology:
    """Tests for the full load."""

    @pytest.mark.asyncio
    async def test_loads_store(self, config_dir):
        store = TopologyStore()
        store.create_schema()

        aliases = load_topology(config_dir, store)

        assert "Host_DB_70" in aliases
        assert len(await store.fetch_all("hosts")) == 4
        assert len(await store.fetch_all("procs")) == 3
        assert len(await store.fetch_all("deploy")) == 4
        store.close()

    @pytest.mark.parametrize("missing", ["host.xml", "proc.xml", "procdeploy.xml"])
    def test_missing_file(self, config_dir, missing):
        (config_dir / missing).unlink()

        with pytest.raises(DescriptorError, match="Config file not exists!") as exc_info:
            check_descriptors(config_dir)

        assert exc_info.value.path == config_dir / missing

    def test_missing_directory(self, tmp_path):
        store = TopologyStore()
        store.create_schema()

        with pytest.raises(DescriptorError):
            load_topology(tmp_path / "nowhere", store)
        store.close()

    def test_malformed_xml(self, tmp_path):
        write_descriptors(tmp_path, host=HOST_XML.replace("</TcmCenter>", ""))
        store = TopologyStore()
        store.create_schema()

        with pytest.raises(DescriptorError, match="Malformed XML"):
            load_topology(tmp_path, store)
        store.close()
