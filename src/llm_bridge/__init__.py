"""Run a command-line text-generation tool as a tracked, cancellable job."""

__version__ = "0.1.0"
