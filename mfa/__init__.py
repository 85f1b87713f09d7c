"""
Multi-factor authentication: email one-time passcodes, session trust windows
and the request gates that tie them together.
"""
