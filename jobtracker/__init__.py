"""
Job Application Tracker
REST API for tracking job applications, backed by MongoDB.

Architecture:
- MongoDB: users and job application records
- JWT: stateless session tokens (header or cookie)
- React front end: served from the compiled bundle in production
"""

__version__ = "1.0.0"
