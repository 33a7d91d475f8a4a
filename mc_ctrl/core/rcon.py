"""
RCON (Remote Console) communication module for MC Control.

`RconClient` speaks the Source-style RCON protocol used by Minecraft servers.
`rcon_session` / `with_session` wrap it in a single-use session: one
connection per logical operation, closed on every exit path.

Concurrent sessions each get their own connection, so commands issued by
concurrent callers may reach the server in any order. Callers that need
ordering must wait for one operation to finish before starting the next.
"""

import select
import socket
import struct
from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, NamedTuple, Optional, TypeVar

from mc_ctrl.common.config import RconConfig
from mc_ctrl.common.constants import RconPacketTypes
from mc_ctrl.common.errors import (
    RconAuthenticationError,
    RconConnectionError,
    RconPacketError,
    RconTimeoutError,
)
from mc_ctrl.common.logging_config import get_logger

T = TypeVar('T')

SendFn = Callable[[str], str]


class RconPacket(NamedTuple):
    """RCON packet structure."""
    size: int
    id: int
    type: int
    body: str


class RconClient:
    """RCON client for communicating with a Minecraft server."""

    # Minecraft caps response payloads at 4096 bytes; add header and terminators.
    MAX_BODY_SIZE = 4096
    MAX_PACKET_SIZE = 4110
    MIN_PACKET_SIZE = 12    # Minimum packet size (header only)
    MAX_COMMAND_LENGTH = 1446  # Longest command the server accepts

    def __init__(self, server_ip: str, port: int, password: str,
                 connect_timeout: float = 5.0, read_timeout: float = 5.0):
        """
        Initialize RCON client.

        Args:
            server_ip: Server IP address or hostname
            port: RCON port
            password: RCON password
            connect_timeout: Timeout for connection establishment
            read_timeout: Timeout for socket read operations
        """
        self.server_ip = self._validate_ip(server_ip)
        self.port = self._validate_port(port)
        self.password = password or ''
        self.connect_timeout = max(0.1, connect_timeout)
        self.read_timeout = max(0.1, read_timeout)
        self.socket = None
        self._connected = False
        self._authenticated = False
        self._last_packet_id = 0

    @classmethod
    def from_config(cls, config: RconConfig) -> 'RconClient':
        return cls(
            config.host,
            config.port,
            config.password,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )

    def _validate_ip(self, ip: str) -> str:
        """
        Validate IP address format.

        Raises:
            ValueError: If IP address is invalid
        """
        if not ip or not isinstance(ip, str):
            raise ValueError("IP address must be a non-empty string")

        # Basic IP validation - allow hostnames too
        if not (ip.replace('.', '').replace(':', '').replace('-', '').replace('_', '').isalnum() or
                ip in ('localhost', '127.0.0.1', '::1')):
            raise ValueError(f"Invalid IP address format: {ip}")

        return ip

    def _validate_port(self, port: int) -> int:
        """
        Validate port number.

        Raises:
            ValueError: If port is invalid
        """
        if isinstance(port, bool) or not isinstance(port, int) or not (1 <= port <= 65535):
            raise ValueError(f"Port must be an integer between 1 and 65535, got: {port}")
        return port

    def _validate_command(self, command: str) -> str:
        """
        Validate and sanitize an RCON command.

        Returns:
            Sanitized command

        Raises:
            ValueError: If command is invalid
        """
        if not command or not isinstance(command, str):
            raise ValueError("Command must be a non-empty string")

        command = command.strip()
        if len(command.encode('utf-8')) > self.MAX_COMMAND_LENGTH:
            raise ValueError(f"Command too long: {len(command)} > {self.MAX_COMMAND_LENGTH}")

        # Remove null bytes and control characters
        command = ''.join(char for char in command if ord(char) >= 32 or char in '\t\n\r')

        if not command:
            raise ValueError("Command contains only invalid characters")

        return command

    def _validate_packet_data(self, data: bytes, expected_min_size: int = MIN_PACKET_SIZE) -> None:
        """
        Validate received packet data.

        Raises:
            RconPacketError: If packet is invalid
        """
        if not data:
            raise RconPacketError("Received empty packet")

        if len(data) < expected_min_size:
            raise RconPacketError(f"Packet too small: {len(data)} < {expected_min_size}")

        if len(data) > self.MAX_PACKET_SIZE:
            raise RconPacketError(f"Packet too large: {len(data)} > {self.MAX_PACKET_SIZE}")

    def _next_packet_id(self) -> int:
        """Return a fresh positive request ID; -1 is reserved for failed logins."""
        self._last_packet_id = self._last_packet_id % (2**31 - 1) + 1
        return self._last_packet_id

    def _send_packet(self, data: str, packet_type: int) -> RconPacket:
        """
        Send an RCON packet and receive the (possibly multi-packet) response.

        Raises:
            RconPacketError: If packet is malformed
            RconTimeoutError: If operation times out
            RconConnectionError: If connection fails
        """
        if not self.socket or not self._connected:
            raise RconConnectionError("Socket not connected")

        data = self._validate_command(data) if packet_type == RconPacketTypes.EXEC_COMMAND else data
        data_bytes = data.encode('utf-8')

        packet_size = 10 + len(data_bytes)
        packet_id = self._next_packet_id()

        # IDs and types are signed: the server answers a failed login with ID -1.
        packet_data = struct.pack('<Iii', packet_size, packet_id, packet_type)
        packet_data += data_bytes + b'\x00\x00'

        try:
            self.socket.settimeout(self.read_timeout)
            self.socket.sendall(packet_data)

            combined_body = bytearray()
            response_count = 0
            response_type = None

            while True:
                try:
                    response_data = self._receive_full_packet()
                except RconTimeoutError:
                    if response_count:
                        break
                    raise

                self._validate_packet_data(response_data)

                declared_size, response_id, current_type = struct.unpack('<Iii', response_data[:12])

                if declared_size < 10:
                    raise RconPacketError(f"Invalid response size: {declared_size}")
                if declared_size != len(response_data) - 4:  # Size field doesn't include itself
                    raise RconPacketError(
                        f"Size mismatch: declared {declared_size}, actual {len(response_data) - 4}"
                    )

                if packet_type == RconPacketTypes.AUTH and response_id == -1:
                    body = self._decode_packet_body(response_data[12:])
                    self._drain_socket()
                    return RconPacket(declared_size, response_id, current_type, body)

                if response_id != packet_id:
                    if response_count == 0:
                        self._drain_socket()
                        raise RconPacketError(
                            f"Unexpected response ID {response_id} for request {packet_id}"
                        )
                    break

                response_count += 1
                if response_type is None:
                    response_type = current_type

                body_bytes = self._extract_body_bytes(response_data[12:])
                if not body_bytes:
                    break
                combined_body.extend(body_bytes)

                # Only a full payload is continued in a further packet.
                if len(body_bytes) < self.MAX_BODY_SIZE:
                    break
                # Minecraft sends no terminator packet; stop once the socket goes quiet.
                if not self._wait_for_additional_packet():
                    break

            body = combined_body.decode('utf-8', errors='replace')
            self._drain_socket()
            return RconPacket(10 + len(combined_body), packet_id, response_type or packet_type, body)

        except socket.timeout as e:
            raise RconTimeoutError(f"Packet operation timed out after {self.read_timeout}s") from e
        except socket.error as e:
            self._connected = False
            raise RconConnectionError(f"Socket error during packet operation: {e}") from e

    def _extract_body_bytes(self, body_data: bytes) -> bytes:
        """Extract body payload from raw packet data, removing terminators."""
        if body_data and body_data[-1:] == b'\x00':
            body_data = body_data[:-1]

        null_pos = body_data.find(b'\x00')
        if null_pos >= 0:
            body_data = body_data[:null_pos]

        return body_data

    def _decode_packet_body(self, body_data: bytes) -> str:
        return self._extract_body_bytes(body_data).decode('utf-8', errors='replace')

    def _drain_socket(self) -> None:
        """Drain leftover data from the socket so it cannot leak into the next read."""
        if not self.socket:
            return

        try:
            self.socket.setblocking(False)
            while True:
                try:
                    data = self.socket.recv(self.MAX_PACKET_SIZE)
                except BlockingIOError:
                    break
                if not data:
                    break
        except (socket.error, AttributeError):
            pass
        finally:
            try:
                self.socket.setblocking(True)
                self.socket.settimeout(self.read_timeout)
            except (socket.error, AttributeError):
                pass

    def _wait_for_additional_packet(self) -> bool:
        """Return True if another packet appears to be available shortly."""
        wait_time = min(0.2, self.read_timeout / 5)
        return self._socket_has_data(wait_time)

    def _socket_has_data(self, timeout: float) -> bool:
        if not self.socket:
            return False
        fileno = getattr(self.socket, 'fileno', None)
        if fileno is None or not callable(fileno):
            # Test doubles may not provide fileno(); assume data is ready to avoid hanging.
            return True
        try:
            ready, _, _ = select.select([self.socket], [], [], timeout)
            return bool(ready)
        except (OSError, ValueError):
            return False
        except TypeError:
            return True

    def _receive_full_packet(self) -> bytes:
        """
        Receive a complete RCON packet, handling partial reads.

        Raises:
            RconPacketError: If packet is invalid
            RconTimeoutError: If operation times out
        """
        try:
            size_data = self._receive_exact(4)
            packet_size = struct.unpack('<I', size_data)[0]

            if packet_size < 10:
                raise RconPacketError(f"Invalid packet size: {packet_size}")
            if packet_size > self.MAX_PACKET_SIZE - 4:
                raise RconPacketError(f"Packet size too large: {packet_size}")

            remaining_data = self._receive_exact(packet_size)

            return size_data + remaining_data

        except socket.timeout as e:
            raise RconTimeoutError("Timeout receiving packet") from e
        except socket.error as e:
            self._connected = False
            raise RconConnectionError(f"Connection error receiving packet: {e}") from e

    def _receive_exact(self, num_bytes: int) -> bytes:
        """
        Receive exactly num_bytes from socket.

        Raises:
            RconConnectionError: If connection is lost
            RconTimeoutError: If the read times out
        """
        if self.socket is None:
            raise RconConnectionError("Socket not connected")
        data = b''
        try:
            while len(data) < num_bytes:
                chunk = self.socket.recv(num_bytes - len(data))
                if not chunk:
                    raise RconConnectionError("Connection closed by remote host")
                data += chunk
        except socket.timeout as e:
            raise RconTimeoutError("Timeout while receiving data") from e
        except socket.error as e:
            self._connected = False
            raise RconConnectionError(f"Connection error while receiving data: {e}") from e
        return data

    def _authenticate(self) -> bool:
        """
        Authenticate with the RCON server.

        Raises:
            RconAuthenticationError: If the server rejects the password
            RconPacketError: If authentication packet is malformed
            RconTimeoutError: If authentication times out
        """
        try:
            response = self._send_packet(self.password, RconPacketTypes.AUTH)
        except (RconPacketError, RconTimeoutError, RconConnectionError):
            self._authenticated = False
            raise

        if response.id == -1:
            self._authenticated = False
            raise RconAuthenticationError("RCON authentication failed: server returned -1 response ID")

        self._authenticated = True
        return True

    def connect(self, timeout: Optional[float] = None) -> None:
        """
        Connect to the RCON server and authenticate. No retries are made.

        Raises:
            RconConnectionError: If connection fails
            RconAuthenticationError: If authentication fails
            RconTimeoutError: If connection times out
        """
        if self._connected and self._authenticated:
            return

        connect_timeout = timeout if timeout is not None else self.connect_timeout

        self.socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.socket.settimeout(connect_timeout)

        try:
            self.socket.connect((self.server_ip, self.port))
            self._connected = True

            if not self._authenticate():
                raise RconAuthenticationError("RCON authentication failed")

        except socket.timeout as exc:
            self.close()
            raise RconTimeoutError(
                f"Timed out connecting to RCON server at {self.server_ip}:{self.port} "
                f"after {connect_timeout}s"
            ) from exc
        except socket.gaierror as exc:
            self.close()
            raise RconConnectionError(
                f"Failed to resolve hostname {self.server_ip}: {exc}"
            ) from exc
        except socket.error as exc:
            self.close()
            raise RconConnectionError(
                f"Failed to connect to RCON server at {self.server_ip}:{self.port}: {exc}"
            ) from exc
        except BaseException:
            # Login rejected, timed out or malformed.
            self.close()
            raise

    def execute_command(self, command: str) -> str:
        """
        Execute an RCON command and return the server's text response.

        Raises:
            RconConnectionError: If not connected or connection fails
            RconPacketError: If packet is malformed
            RconTimeoutError: If command times out
            ValueError: If command is invalid
        """
        if not command or not isinstance(command, str):
            raise ValueError("Command must be a non-empty string")

        if not self._connected or not self._authenticated:
            raise RconConnectionError("RCON client is not connected")

        response = self._send_packet(command, RconPacketTypes.EXEC_COMMAND)
        if response.type != RconPacketTypes.RESPONSE_VALUE:
            raise RconPacketError(
                f"Unexpected response type: {response.type}, expected {RconPacketTypes.RESPONSE_VALUE}"
            )
        return response.body

    def close(self) -> None:
        """Close the RCON connection and clean up resources."""
        self._connected = False
        self._authenticated = False
        if self.socket:
            try:
                self.socket.close()
            except Exception:
                pass  # Ignore errors during cleanup
            finally:
                self.socket = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


ClientFactory = Callable[[RconConfig], RconClient]


@contextmanager
def rcon_session(config: RconConfig,
                 client_factory: ClientFactory = RconClient.from_config) -> Iterator[SendFn]:
    """
    Open one authenticated RCON connection and yield its ``send`` callable.

    The connection is closed when the block exits, however it exits. A
    connect or login failure is raised as `RconConnectionError` (login
    failures keep their `RconAuthenticationError` subclass) before any
    command is sent.
    """
    logger = get_logger(__name__)
    client = client_factory(config)
    try:
        client.connect()
    except (RconTimeoutError, RconPacketError) as exc:
        client.close()
        raise RconConnectionError(str(exc)) from exc
    except BaseException:
        client.close()
        raise

    logger.debug("RCON session opened to %s:%s", config.host, config.port)
    try:
        yield client.execute_command
    finally:
        client.close()
        logger.debug("RCON session to %s:%s closed", config.host, config.port)


SessionFactory = Callable[[RconConfig], ContextManager[SendFn]]


def with_session(config: RconConfig, fn: Callable[[SendFn], T],
                 session_factory: SessionFactory = rcon_session) -> T:
    """Run ``fn(send)`` inside a fresh RCON session and return its result."""
    with session_factory(config) as send:
        return fn(send)


def execute_rcon_command(command: str, config: RconConfig,
                         session_factory: SessionFactory = rcon_session) -> str:
    """
    Execute a single RCON command in its own session (convenience function).
    """
    return with_session(config, lambda send: send(command), session_factory=session_factory)
