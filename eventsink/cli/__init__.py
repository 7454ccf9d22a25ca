"""
Command-line interface for EventSink.
"""
