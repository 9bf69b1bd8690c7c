"""Error kinds raised by the editing core.

Bad values are ``ValueError`` subclasses so callers that only know about
``ValueError`` keep working.
"""

from __future__ import annotations


class MidiEditError(Exception):
    """Base class for every failure reported by midiedit."""


class InvalidArgument(MidiEditError, ValueError):
    """A parameter is outside its documented numeric range."""


class OutOfRangeError(InvalidArgument):
    """A track index does not name a track of the loaded document."""


class MalformedOption(MidiEditError, ValueError):
    """A ``<track>,<value>`` option string could not be parsed."""


class LoadError(MidiEditError):
    """The input file could not be read or is not a valid SMF."""


class WriteError(MidiEditError):
    """The output file could not be written."""
