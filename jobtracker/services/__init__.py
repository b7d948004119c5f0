"""
Services module - MongoDB access for users and jobs.
"""
