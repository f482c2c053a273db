from .stubs import DummySimulatorPlugin, EchoSimulator, ScriptedGateway

__all__ = ["DummySimulatorPlugin", "EchoSimulator", "ScriptedGateway"]
