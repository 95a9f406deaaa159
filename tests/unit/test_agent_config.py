from pathlib import Path

import pytest

from pdroutes_agent.config import load_config


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "pdroutes.yaml"
    config_path.write_text(
        """
reconciler:
  lease_file: /var/lib/dhcp/dhcpd6.leases
  state_file: /var/lib/pdroutes/delegated.db
  duid_match: exact
route_table:
  backend: iproute2
  ip_binary: /sbin/ip
  table: 100
logging:
  file: /var/log/pdroutes.log
  rotate_days: 2
  backup_count: 3
"""
    )

    cfg = load_config(config_path)

    assert cfg.reconciler.lease_file == Path("/var/lib/dhcp/dhcpd6.leases")
    assert cfg.reconciler.state_file == Path("/var/lib/pdroutes/delegated.db")
    assert cfg.reconciler.duid_match == "exact"
    assert cfg.route_table.backend == "iproute2"
    assert cfg.route_table.ip_binary == "/sbin/ip"
    assert cfg.route_table.table == 100
    assert cfg.logging.file == Path("/var/log/pdroutes.log")
    assert cfg.logging.rotate_days == 2
    assert cfg.logging.backup_count == 3


def test_load_config_defaults(tmp_path: Path):
    config_path = tmp_path / "pdroutes.yaml"
    config_path.write_text("")

    cfg = load_config(config_path)

    assert cfg.reconciler.lease_file == Path("/var/run/dhcpdv6.leases")
    assert cfg.reconciler.state_file == Path("/tmp/delegated.db")
    assert cfg.reconciler.duid_match == "tolerant"
    assert cfg.route_table.backend == "netlink"
    assert cfg.route_table.table == 254
    assert cfg.logging.file is None


@pytest.mark.parametrize(
    "text",
    [
        "- just\n- a list\n",
        "route_table:\n  backend: bird\n",
        "reconciler:\n  duid_match: fuzzy\n",
        "logging: verbose\n",
    ],
)
def test_load_config_rejects_invalid(tmp_path: Path, text):
    config_path = tmp_path / "pdroutes.yaml"
    config_path.write_text(text)

    with pytest.raises(ValueError):
        load_config(config_path)
