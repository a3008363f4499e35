"""cct-meter: repeated illuminance and color temperature measurements.

Drives a photometer through measurement sessions, accumulates running
statistics per session and hands each session's report to a sink.
"""

__version__ = "0.1.0"
