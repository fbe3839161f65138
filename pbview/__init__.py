"""pbview: run the pebbles (pb) issue tracker CLI and decode its output."""

__version__ = "0.1.0"
