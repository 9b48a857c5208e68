"""CLI wiring, rendering and exit codes."""

import asyncio
import json

import httpx

from connhealth.application.services.health import HostConnectivity
from connhealth.config import Settings
from connhealth.core.logging.dedup import LogDeduplicator
from connhealth.presentation.cli import HealthCommand, build_parser


class _Config(Settings):
    BACKEND_URL = "https://backend.test"
    BACKEND_API_KEY = None
    BACKEND_HEALTH_PATH = "/rest/v1/"
    REFERENCE_ENDPOINTS_RAW = "a=https://ref-a.test/,b=https://ref-b.test/,c=https://ref-c.test/"
    ASSUME_REACHABLE = False
    WATCH_INTERVAL_S = 0


def _command(network, *, online=True):
    lines = []
    cmd = HealthCommand(
        config=_Config(),
        deduplicator=LogDeduplicator(),
        host=HostConnectivity.static(online),
        transport=network.transport,
        print_fn=lines.append,
    )
    return cmd, lines


def test_parser_subcommands() -> None:
    args = build_parser().parse_args(["probe", "https://x.test", "--timeout-ms", "250"])
    assert args.command == "probe"
    assert args.timeout_ms == 250


def test_diagnose_json_online(network) -> None:
    cmd, lines = _command(network)

    code = asyncio.run(cmd.execute(["diagnose", "--json"]))

    assert code == 0
    data = json.loads(lines[0])
    assert data["status"] == "online"
    assert data["issues"] == []
    assert data["connectivity"]["probed_count"] == 3
    assert data["backend"]["http_status"] == 200


def test_default_command_is_diagnose(network) -> None:
    cmd, lines = _command(network)

    code = asyncio.run(cmd.execute(["--json"]))

    assert code == 0
    assert json.loads(lines[0])["status"] == "online"


def test_degraded_exit_code_and_text_output(network) -> None:
    network.routes["backend.test"] = 503
    cmd, lines = _command(network)

    code = asyncio.run(cmd.execute([]))

    assert code == 1
    assert lines[0].startswith("Status: degraded")
    assert "! backend unreachable: http 503" in lines


def test_offline_exit_code(network) -> None:
    cmd, lines = _command(network, online=False)

    code = asyncio.run(cmd.execute(["diagnose"]))

    assert code == 2
    assert network.requests == []
    assert lines[-1] == "Check the network connection and try again."


def test_endpoints_override(network) -> None:
    cmd, lines = _command(network)

    asyncio.run(cmd.execute(["diagnose", "--endpoints", "only=https://solo.test/", "--json"]))

    assert json.loads(lines[0])["connectivity"]["probed_count"] == 1
    assert "solo.test" in network.hosts()


def test_probe_command(network) -> None:
    network.routes["down.test"] = httpx.ConnectError("refused")
    cmd, lines = _command(network)

    assert asyncio.run(cmd.execute(["probe", "https://ref-a.test/"])) == 0
    assert asyncio.run(cmd.execute(["probe", "https://down.test/", "--json"])) == 1
    assert "reachable (status=200" in lines[0]
    assert json.loads(lines[1])["error_kind"] == "network"


def test_watch_renders_first_report(network) -> None:
    cmd, lines = _command(network)

    code = asyncio.run(cmd.execute(["watch", "--iterations", "2", "--interval-s", "0", "--json"]))

    assert code == 0
    assert len(lines) == 1
    assert json.loads(lines[0])["status"] == "online"


def test_injected_deduplicator_is_left_running(network) -> None:
    dedup = LogDeduplicator(sweep_interval_s=60)
    dedup.start()
    try:
        cmd = HealthCommand(config=_Config(), deduplicator=dedup, host=HostConnectivity.static(True),
                            transport=network.transport, print_fn=lambda _line: None)
        asyncio.run(cmd.execute(["diagnose"]))
        assert dedup.running is True
    finally:
        dedup.stop()
