"""newmachine — provision a fresh macOS or Ubuntu machine."""

__version__ = "0.1.0"
