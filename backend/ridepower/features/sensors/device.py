"""
Speed/cadence sensor connection.

The radio transport (BLE GATT or anything else delivering measurement
frames) is an external collaborator behind SensorTransport. A sensor
without a transport accepts frames pushed in by the caller.
"""

import logging
from typing import Callable, Optional, Protocol

from .csc import CSCDecoder, CSCMeasurement

logger = logging.getLogger(__name__)

FrameCallback = Callable[[bytes], None]
DisconnectCallback = Callable[[], None]


class SensorTransport(Protocol):
    """Delivers raw measurement frames from a connected device."""

    async def connect(
        self,
        on_frame: FrameCallback,
        on_disconnect: DisconnectCallback,
    ) -> str:
        """Open the device, start notifications, return the device name."""
        ...

    async def disconnect(self) -> None:
        """Stop notifications and close the device."""
        ...


class SpeedCadenceSensor:
    """
    Connection lifecycle + decoder for one speed/cadence sensor.

    Readings are only reported while connected. Disconnecting, for any
    reason, resets the counter history.
    """

    def __init__(
        self,
        wheel_circumference_m: float,
        transport: Optional[SensorTransport] = None,
    ):
        self.decoder = CSCDecoder(wheel_circumference_m)
        self.transport = transport
        self.device_name: Optional[str] = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def speed_kmh(self) -> Optional[float]:
        """Wheel speed, None unless connected and decoded."""
        return self.decoder.speed_kmh if self._connected else None

    @property
    def cadence_rpm(self) -> Optional[float]:
        """Crank cadence, None unless connected and decoded."""
        return self.decoder.cadence_rpm if self._connected else None

    async def connect(self, on_frame: Optional[FrameCallback] = None) -> bool:
        """
        Connect to the device.

        Args:
            on_frame: Where frames are routed (defaults to handle_frame)

        Returns:
            True when connected. Failures are logged and leave the
            sensor disconnected; the ride goes on with GPS data.
        """
        if self._connected:
            return True

        self.decoder.reset()
        if self.transport is None:
            self.device_name = "push"
            self._connected = True
            logger.info("Speed/cadence sensor attached (frames pushed by caller)")
            return True

        try:
            self.device_name = await self.transport.connect(
                on_frame or self.handle_frame,
                self.on_disconnected,
            )
        except Exception as e:
            logger.warning(f"Speed/cadence sensor connection failed: {e}")
            await self._safe_transport_disconnect()
            self.on_disconnected()
            return False

        self._connected = True
        logger.info(f"Speed/cadence sensor connected: {self.device_name}")
        return True

    async def disconnect(self) -> None:
        """Release the device. Safe to call when not connected."""
        if self._connected and self.transport is not None:
            await self._safe_transport_disconnect()
        self.on_disconnected()

    def on_disconnected(self) -> None:
        """Device went away: drop readings and counter history."""
        if self._connected:
            logger.info(f"Speed/cadence sensor disconnected: {self.device_name}")
        self._connected = False
        self.device_name = None
        self.decoder.reset()

    def handle_frame(self, data: bytes) -> Optional[CSCMeasurement]:
        """Decode one measurement frame; ignored while disconnected."""
        if not self._connected:
            return None
        return self.decoder.decode(data)

    async def _safe_transport_disconnect(self) -> None:
        try:
            await self.transport.disconnect()
        except Exception as e:
            logger.warning(f"Error during sensor disconnection: {e}")
