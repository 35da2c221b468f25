"""Phase-tagged error types for registry README validation."""

from enum import Enum
from typing import List


class ValidationPhase(str, Enum):
    """Discrete validation phases. Errors in one phase block every later phase."""

    STRUCTURE = "File structure validation"
    FILE_LOAD = "Filesystem reading"
    PARSE = "README parsing"
    FIELD_VALIDATION = "README validation"
    CROSS_REFERENCE = "Cross-referencing relative asset URLs"


# Execution order of the phases
PHASE_ORDER = [
    ValidationPhase.STRUCTURE,
    ValidationPhase.FILE_LOAD,
    ValidationPhase.PARSE,
    ValidationPhase.FIELD_VALIDATION,
    ValidationPhase.CROSS_REFERENCE,
]


class ValidationPhaseError(Exception):
    """Collects ALL errors from one phase, rather than the first one found"""

    def __init__(self, phase: ValidationPhase, errors: List[str]):
        self.phase = phase
        self.errors = list(errors)
        super().__init__(self.render())

    def render(self) -> str:
        lines = [f'Error during "{self.phase.value}" phase of README validation:']
        for error in self.errors:
            lines.append(f"- {error}")
        return "\n".join(lines) + "\n"


class FrontmatterError(ValueError):
    """Base class for problems splitting frontmatter from a README body"""


class EmptyDocument(FrontmatterError):
    def __init__(self):
        super().__init__("README is empty")


class MissingOpeningFence(FrontmatterError):
    def __init__(self):
        super().__init__("README does not start with frontmatter fence")


class UnterminatedFrontmatter(FrontmatterError):
    def __init__(self):
        super().__init__("README does not have two sets of frontmatter fences")


class EmptyFrontmatter(FrontmatterError):
    def __init__(self):
        super().__init__("README has frontmatter fences but no frontmatter content")


def add_file_path_to_error(file_path, message: str) -> str:
    """Prefix an error message with the file it came from"""
    return f'"{file_path}": {message}'
