"""Signal engine: pure indicator math, signal scoring and alert rules.

This package contains business logic with no I/O dependencies
(no database, network, or filesystem access). The stateful side lives
in the dashboard package.
"""
