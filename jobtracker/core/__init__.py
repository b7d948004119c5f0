"""
Core module - configuration, auth, errors and the request pipeline.
"""
