"""villabook — Python client for the villa-booking API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("villabook")
except PackageNotFoundError:
    __version__ = "0.0.0"
