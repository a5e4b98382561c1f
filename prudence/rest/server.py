"""An HTTP server that hands every request to a handler."""

from __future__ import annotations

import atexit
import datetime
import ipaddress
import logging
import os
import socket
import socketserver
import ssl
import sys
import tempfile
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from typing import Any, TextIO

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from prudence.platform import config as platform_config
from prudence.platform.registry import register_type
from prudence.rest.common import HEADER_SERVER, Headers
from prudence.rest.context import Context
from prudence.rest.handler import HandleFunc, get_handle_func
from prudence.rest.request import Request

log = logging.getLogger("prudence.rest")

DEFAULT_NAME = "Prudence"
_TIMEOUT = 5.0
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

Response = tuple[int, list[tuple[str, str]], bytes]


class _NCSALogger:
    """Writes NCSA combined-format lines to a stream, one at a time."""

    def __init__(self, stream: TextIO):
        self._stream = stream
        self._lock = threading.Lock()

    def log(self, line: str) -> None:
        with self._lock:
            try:
                self._stream.write(line)
                self._stream.flush()
            except (OSError, ValueError) as error:
                log.error("%s", error)


_ncsa_loggers: dict[str, _NCSALogger] = {}
_ncsa_loggers_lock = threading.Lock()


def _ncsa_line(
    remote: str,
    method: str,
    target: str,
    protocol: str,
    status: int,
    size: int,
    referer: str,
    agent: str,
    when: datetime.datetime,
) -> str:
    offset = when.strftime("%z") or "+0000"
    stamp = (
        f"{when.day:02d}/{_MONTHS[when.month - 1]}/{when.year:04d}:"
        f"{when.hour:02d}:{when.minute:02d}:{when.second:02d} {offset}"
    )
    return (
        f'{remote} - - [{stamp}] "{method} {target} {protocol}" '
        f'{status} {size} "{referer}" "{agent}"\n'
    )


def _split_address(address: str) -> tuple[str, int]:
    host, separator, port = address.rpartition(":")
    if not separator:
        host, port = address, ""
    host = host.strip("[]")
    if not port:
        return host, 80
    try:
        return host, int(port)
    except ValueError:
        return host, socket.getservbyname(port, "tcp")


def _self_signed_pem(host: str) -> tuple[bytes, bytes]:
    """A fresh self-signed certificate and its key, both PEM."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    subject = x509.Name(
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, DEFAULT_NAME),
            x509.NameAttribute(NameOID.COMMON_NAME, DEFAULT_NAME),
        ]
    )
    alternative_names: list[x509.GeneralName] = []
    for name in dict.fromkeys(filter(None, ("localhost", "127.0.0.1", host))):
        try:
            alternative_names.append(x509.IPAddress(ipaddress.ip_address(name)))
        except ValueError:
            alternative_names.append(x509.DNSName(name))
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .add_extension(x509.SubjectAlternativeName(alternative_names), critical=False)
        .sign(key, hashes.SHA256())
    )
    return (
        certificate.public_bytes(serialization.Encoding.PEM),
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        ),
    )


def _tls_context(certificate_pem: bytes, key_pem: bytes) -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    with tempfile.TemporaryDirectory() as directory:
        certificate_file = os.path.join(directory, "certificate.pem")
        key_file = os.path.join(directory, "key.pem")
        with open(certificate_file, "wb") as file:
            file.write(certificate_pem)
        with open(key_file, "wb") as file:
            file.write(key_pem)
        context.load_cert_chain(certificate_file, key_file)
    context.set_alpn_protocols(["http/1.1"])
    return context


class _HTTPServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = False


class _HTTPServer6(_HTTPServer):
    address_family = socket.AF_INET6


def _make_request_handler(owner: Server, ncsa: _NCSALogger | None) -> type:
    class _RequestHandler(BaseHTTPRequestHandler):
        timeout = _TIMEOUT

        def _dispatch(self) -> None:
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                length = 0
            body = self.rfile.read(length) if length > 0 else b""
            headers = Headers(list(self.headers.items()))
            status, lines, payload = owner.serve(self.command, self.path, headers, body)

            self.send_response_only(status)
            sent = set()
            for name, value in lines:
                self.send_header(name, value)
                sent.add(name.lower())
            if "date" not in sent:
                self.send_header("Date", self.date_time_string())
            if "content-length" not in sent:
                self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            if self.command != "HEAD" and payload:
                self.wfile.write(payload)

            if ncsa is not None:
                ncsa.log(
                    _ncsa_line(
                        self.client_address[0],
                        self.command,
                        self.path,
                        self.request_version,
                        status,
                        len(payload),
                        self.headers.get("Referer", ""),
                        self.headers.get("User-Agent", ""),
                        datetime.datetime.now().astimezone(),
                    )
                )

        do_GET = do_HEAD = do_POST = do_PUT = do_DELETE = do_PATCH = do_OPTIONS = _dispatch

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
            log.debug("%s - %s", self.address_string(), format % args)

    return _RequestHandler


class Server:
    """Listens on an address and passes each request to its handler."""

    def __init__(self, name: str = ""):
        self.name = name or DEFAULT_NAME
        self.address = ""
        self.secure = False
        self.certificate = ""
        self.key = ""
        self.ncsa_prefix = ""
        self.debug = False
        self.handler: HandleFunc | None = None
        self.ready = threading.Event()
        self._httpd: _HTTPServer | None = None
        self._server_lock = threading.Lock()
        self._running = threading.Lock()

    @property
    def port(self) -> int | None:
        """The port actually bound while running, else None."""
        httpd = self._httpd
        return httpd.server_address[1] if httpd is not None else None

    def start(self) -> None:
        """Serve requests until stop() is called; raise OSError if binding fails."""
        with self._running:
            if self.secure:
                log.info("starting secure server: %s", self.address)
            else:
                log.info("starting server: %s", self.address)

            try:
                ncsa = self._ncsa_logger()
            except OSError as error:
                log.error("%s", error)
                ncsa = None

            httpd = self._bind(ncsa)
            try:
                with self._server_lock:
                    self._httpd = httpd
                self.ready.set()
                httpd.serve_forever()
            finally:
                httpd.server_close()

    def stop(self) -> None:
        """Stop serving and wait until start() has returned."""
        with self._server_lock:
            httpd = self._httpd
            if httpd is None:
                return
            log.info("stopping server: %s", self.address)
            httpd.shutdown()
            with self._running:
                pass
            self._httpd = None
            self.ready.clear()
            log.info("stopped server: %s", self.address)

    def serve(
        self,
        method: str = "GET",
        target: str = "/",
        headers: Headers | dict | None = None,
        body: bytes | str | None = None,
    ) -> Response:
        """Handle one request: (status, header lines, body)."""
        if self.handler is None:
            return int(HTTPStatus.OK), [], b""
        context = Context(Request(method, target, headers, body))
        if self.name:
            context.response.headers.set(HEADER_SERVER, self.name)
        context.debug = self.debug
        try:
            self.handler(context)
        except Exception as error:  # noqa: BLE001 - reported as a 500
            context.internal_server_error(error)
        finalized = context.response.finalize()
        if finalized is None:
            return int(HTTPStatus.OK), [], b""
        return finalized

    def _bind(self, ncsa: _NCSALogger | None) -> _HTTPServer:
        host, port = _split_address(self.address)
        server_class = _HTTPServer6 if ":" in host else _HTTPServer
        httpd = server_class((host, port), _make_request_handler(self, ncsa))
        if self.secure:
            try:
                if self.certificate or self.key:
                    context = _tls_context(self.certificate.encode(), self.key.encode())
                else:
                    context = _tls_context(*_self_signed_pem(host))
                httpd.socket = context.wrap_socket(httpd.socket, server_side=True)
            except Exception:
                httpd.server_close()
                raise
        return httpd

    def _ncsa_logger(self) -> _NCSALogger | None:
        filename = platform_config.ncsa_filename
        if not filename:
            return None
        path = filename if filename in ("stdout", "stderr") else self.ncsa_prefix + filename

        with _ncsa_loggers_lock:
            logger = _ncsa_loggers.get(path)
            if logger is None:
                if path == "stdout":
                    stream: TextIO = sys.stdout
                elif path == "stderr":
                    stream = sys.stderr
                else:
                    stream = open(  # noqa: SIM115 - closed at exit
                        path,
                        "a",
                        encoding="utf-8",
                        opener=lambda name, flags: os.open(name, flags, 0o600),
                    )
                    atexit.register(stream.close)
                logger = _NCSALogger(stream)
                _ncsa_loggers[path] = logger

        log.info("NCSA log for %s: %s", self.address, path)
        return logger

    def __repr__(self) -> str:
        return f"Server({self.name!r}, {self.address!r})"


def create_server(config: dict, context: Any = None) -> Server:
    """Constructor for the "Server" type."""
    name = config.get("name")
    server = Server(name if isinstance(name, str) else "")
    address = config.get("address")
    server.address = address if isinstance(address, str) else ""

    secure = config.get("secure")
    if secure is not None:
        server.secure = True
        if isinstance(secure, dict):
            certificate = secure.get("certificate")
            server.certificate = certificate if isinstance(certificate, str) else ""
            key = secure.get("key")
            server.key = key if isinstance(key, str) else ""

    ncsa = config.get("ncsa")
    server.ncsa_prefix = ncsa if isinstance(ncsa, str) else ""
    server.debug = config.get("debug") is True

    handler = config.get("handler")
    if handler is not None:
        server.handler = get_handle_func(handler)
    return server


register_type("Server", create_server)