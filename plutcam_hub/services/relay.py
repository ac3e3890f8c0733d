"""
Flash relay for PlutCam Hub.
Forwards on/off commands to a camera's embedded web server.
"""
import socket
import threading
import time

import requests
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection
from urllib3.connectionpool import HTTPConnectionPool


class RelayError(Exception):
    """The camera could not be reached or did not answer in time"""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


def parse_flash_state(value) -> bool:
    """Interpret the `on` query parameter; anything unrecognised means off"""
    return str(value).strip().lower() in ('1', 'true', 'on')


class DeadlineAdapter(HTTPAdapter):
    """
    HTTP adapter that remembers every socket it opens so a watchdog can
    cut them all at once. Once expired, new sockets are cut on connect.
    """

    def __init__(self):
        self.expired = False
        self._sockets = []
        self._lock = threading.Lock()
        super().__init__()

    def init_poolmanager(self, *args, **kwargs):
        super().init_poolmanager(*args, **kwargs)
        adapter = self

        class TrackedConnection(HTTPConnection):
            def connect(self):
                super().connect()
                adapter.track(self.sock)

        class TrackedPool(HTTPConnectionPool):
            ConnectionCls = TrackedConnection

        self.poolmanager.pool_classes_by_scheme = {'http': TrackedPool}

    def track(self, sock):
        with self._lock:
            self._sockets.append(sock)
            expired = self.expired
        if expired:
            _cut(sock)

    def expire(self):
        """Shut down every socket so blocked reads return immediately"""
        with self._lock:
            self.expired = True
            sockets = list(self._sockets)
        for sock in sockets:
            _cut(sock)


def _cut(sock):
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass  # already closed


class FlashRelay:
    """Sends a single flash command per call; no retries, no local state"""

    def __init__(self, timeout: float = 2.5, body_limit: int = 200):
        self.timeout = timeout
        self.body_limit = body_limit

    def command_url(self, address: str, on: bool) -> str:
        return f"http://{address}/flash?on={'1' if on else '0'}"

    def send(self, camera_id: str, address: str, on: bool) -> dict:
        """
        POST the command and return {"ok", "status", "body"} from the
        camera's reply. At most `body_limit` characters of the body are
        read. The whole exchange, headers and body included, must finish
        within `timeout` seconds. Raises RelayError on timeout or
        connection failure.
        """
        url = self.command_url(address, on)
        state = 'on' if on else 'off'
        deadline = time.monotonic() + self.timeout
        adapter = DeadlineAdapter()
        watchdog = threading.Timer(self.timeout, adapter.expire)
        watchdog.daemon = True
        try:
            with requests.Session() as session:
                # Cameras sit on the LAN; never route through env proxies
                session.trust_env = False
                session.mount('http://', adapter)
                watchdog.start()
                with session.post(url, timeout=(self.timeout, self.timeout), stream=True) as r:
                    body = self._read_excerpt(r, deadline)
                    result = {'ok': r.ok, 'status': r.status_code, 'body': body}
        except requests.exceptions.RequestException as e:
            detail = self._timeout_detail() if adapter.expired else str(e)
            print(f"[Relay] Flash {state} for {camera_id} failed: {detail}")
            raise RelayError(detail) from e
        finally:
            watchdog.cancel()

        if adapter.expired:
            # Cut mid-body can look like a clean EOF
            detail = self._timeout_detail()
            print(f"[Relay] Flash {state} for {camera_id} failed: {detail}")
            raise RelayError(detail)

        print(f"[Relay] Flash {state} for {camera_id} -> HTTP {result['status']}")
        return result

    def _timeout_detail(self) -> str:
        return f"camera did not answer within {self.timeout}s"

    def _read_excerpt(self, response, deadline: float) -> str:
        # 4 bytes per char covers any UTF-8 text up to body_limit chars
        max_bytes = self.body_limit * 4
        data = b''
        for chunk in response.iter_content(chunk_size=256):
            if time.monotonic() >= deadline:
                raise requests.exceptions.ReadTimeout(self._timeout_detail())
            data += chunk
            if len(data) >= max_bytes:
                break
        return data[:max_bytes].decode('utf-8', errors='replace')[:self.body_limit]
