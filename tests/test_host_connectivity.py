"""HostConnectivity flag and transition subscribers."""

import asyncio
import threading

from connhealth.application.services.health import HostConnectivity, StaticHostFlag


def test_static_flag_reports_its_value() -> None:
    assert HostConnectivity.static(True).is_online() is True
    assert HostConnectivity.static(False).is_online() is False


def test_failing_source_is_treated_as_online() -> None:
    def _source() -> bool:
        raise OSError("netlink unavailable")

    assert HostConnectivity(_source).is_online() is True


def test_listeners_fire_on_transitions_only() -> None:
    host = HostConnectivity.static(True)
    events = []
    host.on_online(lambda: events.append("online"))
    host.on_offline(lambda: events.append("offline"))

    host.is_online()
    host.is_online()
    host.set_online(False)
    host.set_online(False)
    host.set_online(True)

    assert events == ["offline", "online"]
    assert host.last_known is True
    assert host.is_online() is True


def test_first_observation_is_a_baseline() -> None:
    host = HostConnectivity.static(False)
    events = []
    host.on_offline(lambda: events.append("offline"))

    host.is_online()

    assert events == []
    assert host.last_known is False


def test_unsubscribe_and_failing_listener() -> None:
    host = HostConnectivity(StaticHostFlag(True))
    events = []

    def _broken() -> None:
        raise RuntimeError("subscriber bug")

    host.on_offline(_broken)
    host.on_offline(lambda: events.append("second"))
    unsubscribe = host.on_offline(lambda: events.append("removed"))
    unsubscribe()

    host.is_online()
    host.set_online(False)

    assert events == ["second"]


def test_async_check_reads_the_source_off_the_event_loop_thread() -> None:
    seen = []

    def _source() -> bool:
        seen.append(threading.get_ident())
        return True

    host = HostConnectivity(_source)

    assert asyncio.run(host.check()) is True
    assert seen and seen[0] != threading.get_ident()
    assert host.last_known is True
