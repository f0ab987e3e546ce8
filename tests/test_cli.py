"""
Tests for command line handling
"""

import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

from ndnping.cli import parse_client_args, parse_server_args, ping_main, server_main
from ndnping.errors import FaceError
from ndnping.loopback import LoopbackFace

ROOT = Path(__file__).resolve().parent.parent


def refuse_connect(self):
    raise FaceError("forwarder unreachable")


class TestClientCommandLine:
    """Test ndnping argument handling"""

    def test_parse(self):
        args = parse_client_args(["/a/b", "-i", "0.5", "-c", "3", "-n", "5"])
        assert args.prefix == "/a/b"
        assert args.interval == 0.5
        assert args.count == 3
        assert args.number == 5
        assert args.extra == []

    def test_extra_positionals(self):
        args = parse_client_args(["/a/b", "-c", "3", "more", "stuff"])
        assert args.prefix == "/a/b"
        assert args.extra == ["more", "stuff"]

    @pytest.mark.parametrize("argv", [
        [],
        ["-h"],
        ["/a/b", "-h"],
        ["/a/b", "-i", "0.05"],
        ["/a/b", "-i", "fast"],
        ["/a/b", "-i", "inf"],
        ["/a/b", "-i", "nan"],
        ["/a/b", "-c", "0"],
        ["/a/b", "-n", "-1"],
        ["/a/b", "-z"],
    ])
    def test_usage_errors_exit_1(self, argv, capsys):
        assert ping_main(argv, prog="ndnping") == 1
        err = capsys.readouterr().err
        assert err.startswith("Usage: ndnping ndnx:/name/prefix [options]")
        assert "minimum 0.10 second" in err

    def test_bad_prefix(self, capsys):
        assert ping_main(["a/b"], prog="ndnping") == 1
        assert "ndnping: bad ndn URI: a/b" in capsys.readouterr().err

    def test_bad_face_settings(self, monkeypatch, capsys):
        monkeypatch.setenv("NDNPING_FACE", "carrier-pigeon")
        assert ping_main(["/a/b", "-c", "1"], prog="ndnping") == 1
        assert "face settings" in capsys.readouterr().err

    def test_connect_failure(self, monkeypatch, capsys):
        monkeypatch.setenv("NDNPING_FACE", "loopback")
        monkeypatch.setattr(LoopbackFace, "connect", refuse_connect)

        assert ping_main(["/a/b", "-c", "1"], prog="ndnping") == 1
        err = capsys.readouterr().err
        assert "Could not connect to forwarder: forwarder unreachable" in err

    def test_extra_arguments_warned(self, monkeypatch, capsys):
        monkeypatch.setenv("NDNPING_FACE", "loopback")
        monkeypatch.setattr(LoopbackFace, "connect", refuse_connect)

        assert ping_main(["/a/b", "more", "stuff"], prog="ndnping") == 1
        assert "ndnping warning: extra arguments ignored" in capsys.readouterr().err


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")
class TestClientInterrupt:
    """Test Ctrl-C: report once, then die by SIGINT"""

    def test_sigint_reports_then_reraises(self):
        env = dict(os.environ,
                   NDNPING_FACE="loopback",
                   PYTHONUNBUFFERED="1",
                   PYTHONPATH=os.pathsep.join(
                       p for p in (str(ROOT), os.environ.get("PYTHONPATH")) if p))
        proc = subprocess.Popen(
            [sys.executable, "-c", "from ndnping.cli import main_ping; main_ping()",
             "/a/b", "-n", "3"],
            stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True, env=env,
        )
        try:
            banner = proc.stdout.readline()
            assert banner == "NDNPING /a/b\n"
            time.sleep(0.3)
            proc.send_signal(signal.SIGINT)
            out, err = proc.communicate(timeout=10)
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()

        assert proc.returncode == -signal.SIGINT
        assert out.count("--- /a/b ndnping statistics ---") == 1
        assert "1 Interests transmitted, 0 Data received, 100.0% packet loss" in out
        assert "Traceback" not in err


class TestServerCommandLine:
    """Test ndnpingserver argument handling"""

    def test_parse(self):
        args = parse_server_args(["/a/b", "-x", "4", "-d"])
        assert args.prefix == "/a/b"
        assert args.freshness == 4
        assert args.daemon is True

    def test_defaults(self):
        args = parse_server_args(["/a/b"])
        assert args.freshness == 1
        assert args.daemon is False

    @pytest.mark.parametrize("argv", [[], ["-h"], ["/a/b", "-x", "0"], ["/a/b", "-x", "soon"]])
    def test_usage_errors_exit_1(self, argv, capsys):
        assert server_main(argv, prog="ndnpingserver") == 1
        assert "[-x freshness] - set FreshnessSeconds" in capsys.readouterr().err

    def test_bad_prefix(self, capsys):
        assert server_main(["ndnx:a"], prog="ndnpingserver") == 1
        assert "bad ndn URI" in capsys.readouterr().err

    def test_connect_failure(self, monkeypatch, capsys):
        monkeypatch.setenv("NDNPING_FACE", "loopback")
        monkeypatch.setattr(LoopbackFace, "connect", refuse_connect)

        assert server_main(["/a/b"], prog="ndnpingserver") == 1
        assert "Could not connect to forwarder" in capsys.readouterr().err
