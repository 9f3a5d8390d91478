"""
Users Module
============

Registration, roles, presence and the identity resolved for each request.
"""
