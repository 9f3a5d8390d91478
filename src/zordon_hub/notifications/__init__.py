"""
Notifications Module
====================

Outbound e-mail for assignments and approaching deadlines.
"""
