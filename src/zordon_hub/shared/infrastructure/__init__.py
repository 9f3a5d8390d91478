"""
Infrastructure Layer
=====================

Low-level technical concerns shared by every bounded context:
- Logging setup
- Realtime room fan-out
- Background job scheduling
"""
