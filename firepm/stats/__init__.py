"""Statistical fitting modules."""

from . import regression as regression
