"""
Core project package for DealerHub (settings, URLs, shared security helpers).
"""
