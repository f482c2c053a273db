from .espflash import EspflashSimulatorPlugin
from .qemu import QemuSimulatorPlugin
from .wokwi import WokwiSimulatorPlugin

__all__ = [
    "EspflashSimulatorPlugin",
    "QemuSimulatorPlugin",
    "WokwiSimulatorPlugin",
]
