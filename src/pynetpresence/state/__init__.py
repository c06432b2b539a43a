"""Presence state layer.

Event routing, the per-identity debounced state machines, the aggregate
identity and the registry that holds them. The network observer only
publishes events; this package is the only place presence values change.
"""
