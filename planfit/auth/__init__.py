"""
Session-cookie authentication with bcrypt-hashed passwords.
"""
