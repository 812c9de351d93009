import logging
import socket
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set

from a2a_stack.config import settings
from a2a_stack.config.constants import ServiceSpec
from a2a_stack.errors import PortExhausted

logger = logging.getLogger(__name__)

MAX_PORT = 65535


def check_port_available(port: int, host: str = settings.PORT_PROBE_HOST) -> bool:
    logger.debug("event=port_probe port=%s host=%s", port, host)
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((host, port))
            return True
    except OSError:
        logger.debug("event=port_unavailable port=%s host=%s", port, host)
        return False


class PortAllocator:
    """Hands out distinct host ports for one provisioning run.

    Each call scans upward from the preferred start and returns the lowest port
    that binds on loopback and was not already handed out by this allocator.
    The probe socket is closed before returning, so another process can still
    take the port before docker compose binds it; reconciliation covers that.
    """

    def __init__(
        self,
        scan_window: int = settings.PORT_SCAN_WINDOW,
        probe: Optional[Callable[[int], bool]] = None,
    ):
        if scan_window < 1:
            raise ValueError(f"scan_window must be >= 1, got {scan_window}")
        self.scan_window = scan_window
        self.probe = probe or check_port_available
        self.claimed: Set[int] = set()

    def allocate(self, preferred_start: int) -> int:
        if not 1 <= preferred_start <= MAX_PORT:
            raise ValueError(f"Port must be in 1..{MAX_PORT}, got {preferred_start}")

        end = min(preferred_start + self.scan_window, MAX_PORT + 1)
        for port in range(preferred_start, end):
            if port in self.claimed:
                continue
            if self.probe(port):
                self.claimed.add(port)
                if port != preferred_start:
                    logger.info("event=port_bumped preferred=%s allocated=%s", preferred_start, port)
                return port

        logger.error("event=port_exhausted preferred=%s window=%s", preferred_start, self.scan_window)
        raise PortExhausted(preferred_start, self.scan_window)

    def allocate_many(self, preferred_starts: Iterable[int]) -> List[int]:
        return [self.allocate(port) for port in preferred_starts]

    def allocate_specs(
        self,
        specs: Iterable[ServiceSpec],
        reserved: Optional[Mapping[str, int]] = None,
    ) -> Dict[str, int]:
        """One port per spec, in spec order. Roles in `reserved` keep their port unprobed."""
        reserved = dict(reserved or {})
        self.claimed.update(reserved.values())
        assignments: Dict[str, int] = {}
        for spec in specs:
            if spec.name in assignments:
                raise ValueError(f"Duplicate service spec '{spec.name}'")
            if spec.name in reserved:
                assignments[spec.name] = reserved[spec.name]
            else:
                assignments[spec.name] = self.allocate(spec.preferred_port)
        logger.info("event=ports_allocated assignments=%s reserved=%s", assignments, len(reserved))
        return assignments
