"""Advertise the relay on the local network via mDNS / DNS-SD."""
from __future__ import annotations

import logging
import socket
from typing import Optional

from zeroconf import ServiceInfo
from zeroconf.asyncio import AsyncZeroconf

logger = logging.getLogger(__name__)

SERVICE_TYPE = "_http._tcp.local."


def _local_address() -> str:
    """Best guess at the LAN address other hosts can reach us on."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        try:
            # No packet is sent; connect() only picks the outbound interface
            s.connect(("10.255.255.255", 1))
            return s.getsockname()[0]
        except OSError:
            return "127.0.0.1"


def build_service_info(name: str, port: int, version: str, address: Optional[str] = None) -> ServiceInfo:
    hostname = name.lower()
    return ServiceInfo(
        SERVICE_TYPE,
        f"{name}.{SERVICE_TYPE}",
        addresses=[socket.inet_aton(address or _local_address())],
        port=port,
        properties={"path": "/", "version": version},
        server=f"{hostname}.local.",
    )


class ServiceAdvertiser:
    """Registers the HTTP service on start and withdraws it on stop."""

    def __init__(self, name: str, port: int, version: str):
        self.name = name
        self.port = port
        self.version = version
        self._zc: Optional[AsyncZeroconf] = None
        self._info: Optional[ServiceInfo] = None

    async def start(self) -> None:
        try:
            self._info = build_service_info(self.name, self.port, self.version)
            self._zc = AsyncZeroconf()
            await self._zc.async_register_service(self._info)
        except Exception:
            logger.exception("mDNS advertisement failed, continuing without it")
            self._info = None
            await self.stop()
            return
        logger.info("mDNS: service advertised as %s", self._info.server.rstrip("."))
        logger.info("Access via: http://%s:%d", self._info.server.rstrip("."), self.port)

    async def stop(self) -> None:
        zc, info = self._zc, self._info
        self._zc = None
        self._info = None
        if zc is None:
            return
        try:
            if info is not None:
                await zc.async_unregister_service(info)
        except Exception:
            logger.exception("Failed to withdraw mDNS service")
        finally:
            await zc.async_close()
