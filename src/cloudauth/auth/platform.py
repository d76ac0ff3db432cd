"""Detect whether the process runs on the cloud platform.

The probe is a single plain GET of the metadata server root; the answer
must carry ``Metadata-Flavor: Google``. A host that cannot
be resolved or refuses the connection means "not on the platform"; any
other failure is unexpected and propagates so that callers can report it.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from cloudauth.config import METADATA_FLAVOR_HEADER, METADATA_FLAVOR_VALUE, AuthSettings
from cloudauth.exceptions import HostUnreachableError
from cloudauth.transport import RequestConfig, Transport

logger = logging.getLogger(__name__)


class PlatformDetector:
    """Memoized metadata-server probe.

    Attributes:
        result: ``None`` until the first probe completes, then ``True`` or
            ``False`` for the life of the detector.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> None:
        self.settings = settings or AuthSettings()
        self.transport = transport or Transport(self.settings)
        self.result: Optional[bool] = None
        self._lock = threading.Lock()

    def is_platform(self) -> bool:
        """Return ``True`` if the metadata server answers as Google.

        Concurrent callers wait for the one probe in flight. A probe that
        raises leaves :attr:`result` unset so a later call probes again.

        Raises:
            TransportError: The probe failed for a reason other than an
                unreachable host.
        """
        with self._lock:
            if self.result is not None:
                return self.result
            self.result = self._probe()
            return self.result

    def _probe(self) -> bool:
        url = self.settings.metadata_root_url
        logger.debug("Probing metadata server at %s", url)
        try:
            response = self.transport.request(RequestConfig(url=url))
        except HostUnreachableError as exc:
            logger.debug("Metadata server unreachable: %s", exc.message)
            return False
        flavor = response.headers.get(METADATA_FLAVOR_HEADER.lower())
        return flavor == METADATA_FLAVOR_VALUE
