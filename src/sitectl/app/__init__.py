"""Bootstrap orchestrator, live clients, and the App aggregate."""

from sitectl.app.clients import ClientChannel, ClientRegistry
from sitectl.app.core import App
from sitectl.app.phases import BootstrapPhase, Phase, PhaseRecord

__all__ = ["App", "BootstrapPhase", "ClientChannel", "ClientRegistry", "Phase", "PhaseRecord"]
