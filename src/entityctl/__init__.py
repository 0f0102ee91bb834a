"""entityctl — runtime-defined entities with a typed filter/query core."""

__version__ = "0.1.0"
