"""Command line entry points: ``ndnping`` and ``ndnpingserver``."""

import argparse
import logging
import os
import signal
import sys
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import ValidationError

from .client import PingClient
from .config import PING_MIN_INTERVAL, ClientConfig, FaceConfig, ServerConfig
from .errors import FaceError, InvalidNameError
from .face import Face
from .logger import ProbeLogger, RunConfig, setup_logging
from .name import PING_COMPONENT, Name
from .server import PingServer

logger = logging.getLogger(__name__)

CLIENT_USAGE = (
    "Usage: %(prog)s ndnx:/name/prefix [options]\n"
    "Ping a NDN name prefix using Interests with name ndnx:/name/prefix/ping/number.\n"
    "The numbers in the Interests are randomly generated unless specified.\n"
    "  [-i interval] - set ping interval in seconds (minimum %(min).2f second)\n"
    "  [-c count] - set total number of pings\n"
    "  [-n number] - set the starting number, the number is incremented by 1 after each Interest\n"
    "  [--log-dir dir] - write a JSONL log of every probe under dir\n"
    "  [--status-port port] - serve live statistics over HTTP on port\n"
    "  [-h] - print this message and exit\n"
)

SERVER_USAGE = (
    "Usage: %(prog)s ndnx:/name/prefix [options]\n"
    "Starts a NDN ping server that responds to Interests with name"
    " ndnx:/name/prefix/ping/number.\n"
    "  [-x freshness] - set FreshnessSeconds\n"
    "  [-d] - run server in daemon mode\n"
    "  [--status-port port] - serve live statistics over HTTP on port\n"
    "  [-h] - print this message and exit\n"
)


class UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that reports errors as UsageError instead of exiting 2."""

    def error(self, message):
        raise UsageError(message)


def _usage(prog: str, text: str) -> int:
    sys.stderr.write(text % {'prog': prog, 'min': PING_MIN_INTERVAL})
    return 1


def _prog(argv0: Optional[str], default: str) -> str:
    return os.path.basename(argv0) if argv0 else default


def parse_client_args(argv: List[str]) -> argparse.Namespace:
    parser = _Parser(add_help=False)
    parser.add_argument("prefix", nargs="?")
    parser.add_argument("extra", nargs="*")
    parser.add_argument("-i", dest="interval", type=float, default=1.0)
    parser.add_argument("-c", dest="count", type=int)
    parser.add_argument("-n", dest="number", type=int)
    parser.add_argument("-h", dest="help", action="store_true")
    parser.add_argument("--log-dir")
    parser.add_argument("--status-port", type=int)
    return parser.parse_intermixed_args(argv)


def parse_server_args(argv: List[str]) -> argparse.Namespace:
    parser = _Parser(add_help=False)
    parser.add_argument("prefix", nargs="?")
    parser.add_argument("extra", nargs="*")
    parser.add_argument("-x", dest="freshness", type=int, default=1)
    parser.add_argument("-d", dest="daemon", action="store_true")
    parser.add_argument("-h", dest="help", action="store_true")
    parser.add_argument("--status-port", type=int)
    return parser.parse_intermixed_args(argv)


def _check_prefix(prog: str, uri: str) -> bool:
    try:
        Name.from_uri(uri).append(PING_COMPONENT)
    except InvalidNameError:
        sys.stderr.write(f"{prog}: bad ndn URI: {uri}\n")
        return False
    return True


def _connect(listen: bool) -> Tuple[Optional[FaceConfig], Optional[Face]]:
    try:
        face_config = FaceConfig.from_env()
    except ValidationError as e:
        sys.stderr.write(f"Bad NDNPING_* face settings: {e.errors()[0]['msg']}\n")
        return None, None
    face = face_config.create_face(listen=listen)
    try:
        face.connect()
    except FaceError as e:
        sys.stderr.write(f"Could not connect to forwarder: {e}\n")
        return face_config, None
    return face_config, face


def _start_status_api(source, role: str, port: Optional[int]):
    if port is None:
        return
    from .api import create_app, serve_in_background
    serve_in_background(create_app(source, role), port)


def daemonize():
    """Detach from the terminal; stdio goes to /dev/null, cwd to /."""
    if os.fork() != 0:
        os._exit(0)
    os.setsid()
    os.chdir("/")

    devnull = os.open(os.devnull, os.O_RDWR)
    for fd in (0, 1, 2):
        os.dup2(devnull, fd)
    if devnull > 2:
        os.close(devnull)
    os.umask(0o027)


def ping_main(argv: Optional[List[str]] = None, prog: Optional[str] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
        prog = prog or _prog(sys.argv[0], "ndnping")
    prog = prog or "ndnping"
    setup_logging()

    try:
        args = parse_client_args(argv)
        if args.help or args.prefix is None:
            raise UsageError("missing name prefix")
        config = ClientConfig(
            prefix=args.prefix,
            interval=args.interval,
            count=args.count,
            number=args.number,
            log_dir=args.log_dir,
            status_port=args.status_port,
        )
    except (UsageError, ValidationError):
        return _usage(prog, CLIENT_USAGE)

    if not _check_prefix(prog, config.prefix):
        return 1
    if args.extra:
        sys.stderr.write(f"{prog} warning: extra arguments ignored\n")

    face_config, face = _connect(listen=False)
    if face is None:
        return 1

    probe_logger = None
    if config.log_dir:
        probe_logger = ProbeLogger(output_dir=config.log_dir)
        probe_logger.log_config(RunConfig(
            run_id=probe_logger.run_id,
            timestamp=datetime.now().isoformat(),
            prefix=config.prefix,
            interval=config.interval,
            count=config.total,
            start_number=config.number,
            face=face_config.kind,
        ))

    client = PingClient.from_config(config, face, probe_logger=probe_logger)
    interrupted = []
    previous = signal.getsignal(signal.SIGINT)

    def handle_interrupt(signum, frame):
        interrupted.append(signum)
        client.cancel()
        signal.signal(signal.SIGINT, previous)

    signal.signal(signal.SIGINT, handle_interrupt)
    _start_status_api(client, "client", config.status_port)

    try:
        client.run()
    finally:
        face.close()
        if probe_logger:
            probe_logger.close()

    if interrupted:
        signal.signal(signal.SIGINT, signal.SIG_DFL)
        os.kill(os.getpid(), signal.SIGINT)
    return 0


def server_main(argv: Optional[List[str]] = None, prog: Optional[str] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
        prog = prog or _prog(sys.argv[0], "ndnpingserver")
    prog = prog or "ndnpingserver"
    setup_logging(logging.INFO)

    try:
        args = parse_server_args(argv)
        if args.help or args.prefix is None:
            raise UsageError("missing name prefix")
        config = ServerConfig(
            prefix=args.prefix,
            freshness=args.freshness,
            daemon=args.daemon,
            status_port=args.status_port,
        )
    except (UsageError, ValidationError):
        return _usage(prog, SERVER_USAGE)

    if not _check_prefix(prog, config.prefix):
        return 1
    if args.extra:
        sys.stderr.write(f"{prog} warning: extra arguments ignored\n")

    _, face = _connect(listen=True)
    if face is None:
        return 1

    server = PingServer.from_config(config, face)
    try:
        server.register()
    except FaceError as e:
        sys.stderr.write(f"Failed to register interest: {e}\n")
        face.close()
        return 1

    if config.daemon:
        daemonize()

    def handle_stop(signum, frame):
        server.stop()

    signal.signal(signal.SIGINT, handle_stop)
    signal.signal(signal.SIGTERM, handle_stop)
    _start_status_api(server, "server", config.status_port)

    try:
        server.run()
    except FaceError as e:
        logger.error("face error, stopping: %s", e)
    finally:
        face.close()
    return 0


def main_ping():
    sys.exit(ping_main())


def main_server():
    sys.exit(server_main())
