"""Authentication core.

Learn: Cookie-backed sessions on top of signed tokens. A request is
authenticated only when BOTH hold:
1. the token in the `token` cookie verifies (signature, expiry, max age)
2. a live Session row with that exact token exists, and its user exists

Either check alone is not enough: logout deletes the Session row while the
token itself stays cryptographically valid until it expires.
"""
