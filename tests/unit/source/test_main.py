"""
Unit tests for the standalone lookup tool.

Tests cover:
- parse_args(): config default and positional tuples
- run(): missing config exits 1
- run(): EveBox down exits 1
- run(): prints matched field values per tuple
"""

from unittest.mock import patch

import httpx
import pytest

from suricata_wise.main import parse_args, run

SAMPLE_TUPLE = "1490640063;tcp;10.0.2.2;57000;10.0.2.15;22"

SAMPLE_YAML = """
suricata:
  evBox: http://evebox.local:5636
  fields: severity;signature
"""

SAMPLE_ALERT = {"event": {"_source": {"alert": {"severity": 2, "signature": "ET SCAN"}}}}


def _evebox(version_status: int = 200) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/1/version":
            return httpx.Response(version_status, json={"version": "0.7.0"})
        if "10.0.2.2" in request.url.params.get("queryString", ""):
            return httpx.Response(200, json={"alerts": [SAMPLE_ALERT]})
        return httpx.Response(200, json={"alerts": []})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParseArgs:
    """Test command-line parsing."""

    def test_default_config(self) -> None:
        args = parse_args([SAMPLE_TUPLE])
        assert args.config == "config/suricata.yaml"
        assert args.tuples == [SAMPLE_TUPLE]

    def test_custom_config(self) -> None:
        args = parse_args(["--config", "x.yaml", SAMPLE_TUPLE, SAMPLE_TUPLE])
        assert args.config == "x.yaml"
        assert len(args.tuples) == 2


class TestRun:
    """Test the lookup run."""

    @pytest.mark.asyncio
    async def test_missing_config(self, tmp_path) -> None:
        assert await run(str(tmp_path / "absent.yaml"), [SAMPLE_TUPLE]) == 1

    @pytest.mark.asyncio
    async def test_evebox_down(self, tmp_path) -> None:
        path = tmp_path / "suricata.yaml"
        path.write_text(SAMPLE_YAML)
        with patch("suricata_wise.bootstrap.make_client", return_value=_evebox(version_status=500)):
            assert await run(str(path), [SAMPLE_TUPLE]) == 1

    @pytest.mark.asyncio
    async def test_prints_matches(self, tmp_path, capsys: pytest.CaptureFixture) -> None:
        path = tmp_path / "suricata.yaml"
        path.write_text(SAMPLE_YAML)
        other = "1490640063;udp;192.168.1.1;53;192.168.1.2;5353"
        with patch("suricata_wise.bootstrap.make_client", return_value=_evebox()):
            assert await run(str(path), [SAMPLE_TUPLE, other]) == 0

        out = capsys.readouterr().out
        assert f"{SAMPLE_TUPLE}: 2 values" in out
        assert "  severity = 2" in out
        assert "  signature = ET SCAN" in out
        assert f"{other}: no correlation found" in out
