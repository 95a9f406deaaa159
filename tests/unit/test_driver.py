import logging
import os
from pathlib import Path

from pdroutes.config import ReconcilerConfig
from pdroutes.driver import DelegatedRouteDriver, RunStatus
from pdroutes.routes import Route

from conftest import lease_block

PREFIX_LEASE = lease_block("ia-pd", bytes.fromhex("0001aabbcc"), "2001:db8:0:100::/56")
ADDRESS_LEASE = lease_block("ia-na", bytes.fromhex("0101aabbcc"), "2001:db8::10")
ROUTE = Route("2001:db8:0:100::/56", "2001:db8::10")


def build_driver(tmp_path: Path, route_table, **kwargs) -> DelegatedRouteDriver:
    config = ReconcilerConfig(
        lease_file=tmp_path / "dhcpdv6.leases",
        state_file=tmp_path / "delegated.db",
        **kwargs,
    )
    return DelegatedRouteDriver(config, route_table)


def age(path: Path, seconds: int) -> None:
    stat = path.stat()
    os.utime(path, (stat.st_atime - seconds, stat.st_mtime - seconds))


def test_first_run_adds_correlated_route(tmp_path: Path, route_table, write_leases):
    write_leases(PREFIX_LEASE, ADDRESS_LEASE)
    driver = build_driver(tmp_path, route_table)

    result = driver.run()

    assert result.status is RunStatus.COMPLETED
    assert result.desired == [ROUTE]
    assert route_table.mutations == [("add", ROUTE)]
    assert (tmp_path / "delegated.db").read_text() == f"{ROUTE}\n"


def test_expired_delegation_is_removed(tmp_path: Path, route_table, write_leases):
    route_table.routes.add(ROUTE)
    state = tmp_path / "delegated.db"
    state.write_text(f"{ROUTE}\n")
    age(state, 60)
    write_leases(
        lease_block("ia-pd", bytes.fromhex("0001aabbcc"), "2001:db8:0:100::/56", state="expired"),
        ADDRESS_LEASE,
    )

    result = build_driver(tmp_path, route_table).run()

    assert result.desired == []
    assert route_table.mutations == [("delete", ROUTE)]
    assert state.read_text() == ""


def test_unchanged_lease_file_fast_exits(tmp_path: Path, route_table, write_leases, monkeypatch):
    leases = write_leases(PREFIX_LEASE, ADDRESS_LEASE)
    age(leases, 60)
    state = tmp_path / "delegated.db"
    state.write_text("2001:db8:0:900::/56 via 2001:db8::90\n")
    before = state.stat().st_mtime
    driver = build_driver(tmp_path, route_table)

    def fail(*args, **kwargs):
        raise AssertionError("lease store must not be parsed")

    monkeypatch.setattr(driver, "read_leases", fail)

    result = driver.run()

    assert result.status is RunStatus.SKIPPED
    assert route_table.calls == []
    assert state.stat().st_mtime == before
    assert state.read_text() == "2001:db8:0:900::/56 via 2001:db8::90\n"


def test_force_bypasses_fast_exit(tmp_path: Path, route_table, write_leases):
    leases = write_leases(PREFIX_LEASE, ADDRESS_LEASE)
    age(leases, 60)
    state = tmp_path / "delegated.db"
    state.write_text("")

    result = build_driver(tmp_path, route_table).run(force=True)

    assert result.status is RunStatus.COMPLETED
    assert route_table.mutations == [("add", ROUTE)]
    assert state.read_text() == f"{ROUTE}\n"


def test_rerun_after_touch_issues_no_mutations(tmp_path: Path, route_table, write_leases):
    write_leases(PREFIX_LEASE, ADDRESS_LEASE)
    driver = build_driver(tmp_path, route_table)
    driver.run()
    state = tmp_path / "delegated.db"
    age(state, 60)
    route_table.calls.clear()

    result = driver.run()

    assert result.status is RunStatus.COMPLETED
    assert route_table.mutations == []
    assert result.reconcile.persisted is False


def test_missing_lease_file_is_fatal_for_the_run(tmp_path: Path, route_table, caplog):
    with caplog.at_level(logging.CRITICAL, logger="pdroutes.driver"):
        result = build_driver(tmp_path, route_table).run()

    assert result.status is RunStatus.FAILED
    assert "Aborting reconciliation" in caplog.text
    assert route_table.calls == []
    assert not (tmp_path / "delegated.db").exists()


def test_unmatched_delegation_is_reported(tmp_path: Path, route_table, write_leases, caplog):
    write_leases(
        PREFIX_LEASE,
        lease_block("ia-na", bytes.fromhex("0101aabbcd"), "2001:db8::10"),
    )

    with caplog.at_level(logging.INFO):
        result = build_driver(tmp_path, route_table).run()

    assert result.desired == []
    assert route_table.mutations == []
    assert "no DHCPv6 lease found for DUID 0001aabbcc" in caplog.text


def test_exact_matching_configuration(tmp_path: Path, route_table, write_leases):
    write_leases(PREFIX_LEASE, ADDRESS_LEASE)

    result = build_driver(tmp_path, route_table, duid_match="exact").run()

    assert result.desired == []


def test_identifier_dump_includes_inactive_leases(tmp_path: Path, route_table, write_leases, caplog):
    write_leases(
        PREFIX_LEASE,
        lease_block("ia-na", bytes.fromhex("0102"), "2001:db8::99", state="expired"),
    )

    with caplog.at_level(logging.DEBUG, logger="pdroutes"):
        build_driver(tmp_path, route_table, dump_identifiers=True).run()

    assert "IA-NA 2001:db8::99 state=expired" in caplog.text
    assert "0001aabbcc" in caplog.text


def test_non_utf8_duid_does_not_abort_run(tmp_path: Path, route_table, write_leases):
    leases = write_leases(PREFIX_LEASE, ADDRESS_LEASE)
    with leases.open("ab") as fh:
        fh.write(
            b'\nia-na "\\001\xff\xfe" {\n'
            b"  iaaddr 2001:db8::30 {\n    binding state active;\n  }\n}\n"
        )

    result = build_driver(tmp_path, route_table).run()

    assert result.status is RunStatus.COMPLETED
    assert result.desired == [ROUTE]
    assert route_table.mutations == [("add", ROUTE)]


def test_corrupt_database_is_fatal_for_the_run(tmp_path: Path, route_table, write_leases, caplog):
    write_leases(PREFIX_LEASE, ADDRESS_LEASE)
    (tmp_path / "delegated.db").write_bytes(b"\xff\xfe garbage\n")

    with caplog.at_level(logging.CRITICAL, logger="pdroutes.driver"):
        result = build_driver(tmp_path, route_table).run(force=True)

    assert result.status is RunStatus.FAILED
    assert "corrupt route database" in caplog.text
    assert route_table.mutations == []
