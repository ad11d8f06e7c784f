"""Project generation from template trees."""

from .binary import DEFAULT_BINARY_EXTENSIONS, BinaryClassifier
from .generator import GenerateOptions, GenerationReport, Generator, PlannedAction
from .paths import contained_destination

__all__ = [
    "BinaryClassifier",
    "DEFAULT_BINARY_EXTENSIONS",
    "GenerateOptions",
    "GenerationReport",
    "Generator",
    "PlannedAction",
    "contained_destination",
]
