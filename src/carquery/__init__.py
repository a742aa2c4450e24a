"""CarQuery: car rental registration and ride request intake."""

__version__ = "0.1.0"
