"""Personal task board: signed cookie sessions and a filterable task list."""

__version__ = "0.1.0"
