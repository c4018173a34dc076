"""Deployment notifications: tell downstream tooling a new artifact exists.

A deployment descriptor is delivered through exactly one sink: the message
queue when secure credentials are available, otherwise the HTTP relay.
Delivery is best-effort; a failure is logged and reported, never raised.
"""
