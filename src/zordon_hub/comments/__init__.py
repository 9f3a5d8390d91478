"""
Comments Module
===============

Per-ticket discussion threads with realtime fan-out to the ticket's room.
"""
