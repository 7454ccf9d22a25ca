"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Version information for EventSink.
"""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def get_version() -> str:
    """
    Resolve the EventSink version.

    A VERSION file next to the package (source checkout) takes precedence
    over the installed distribution metadata.

    Returns:
        str: The version string (e.g., "0.1.0")
    """
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    try:
        return version("eventsink")
    except PackageNotFoundError:
        return "unknown"


__version__ = get_version()
