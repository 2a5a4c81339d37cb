"""Student–instructor matching lifecycle engine for driving-school back offices."""

__version__ = "0.1.0"
