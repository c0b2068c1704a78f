"""Stage pipeline: definitions and the sequential orchestrator."""

from .sequencer import APOLOGY, StageOrchestrator, apologize
from .stages import StageDefinition, StageKind

__all__ = [
	"APOLOGY",
	"StageDefinition",
	"StageKind",
	"StageOrchestrator",
	"apologize",
]
