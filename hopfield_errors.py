"""Error kinds raised by the relaxation engine and its collaborators.

All of them are recoverable: the operation that raised is rejected and the
network it targeted keeps its previous, valid contents.  Only the command
line driver decides whether an error ends the process.
"""


class HopfieldError(Exception):
    """Base class for every error raised by this project."""


class DimensionMismatch(HopfieldError, ValueError):
    """State length, weight matrix shape and neuron count disagree."""


class NonSymmetricWeights(HopfieldError, ValueError):
    """``weights[i][j] != weights[j][i]`` for some pair of units."""


class OutOfBounds(HopfieldError, IndexError):
    """A neuron index outside ``[0, count)`` was requested."""


class MalformedInput(HopfieldError, ValueError):
    """External input (network or TSP file) could not be parsed."""


class CalibrationFailure(HopfieldError, RuntimeError):
    """The native random generator's output width could not be determined."""
