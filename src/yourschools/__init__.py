"""YourSchools — school-directory API backend.

Users register, log in with cookie-backed sessions, and browse schools.
This package holds the authentication core (tokens, sessions, request
context) and the HTTP routes that drive it.
"""

__version__ = "0.1.0"
