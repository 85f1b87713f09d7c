"""
Staff accounts: custom user model, login/logout and user administration.
"""
