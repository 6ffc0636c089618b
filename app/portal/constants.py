"""
Central constants for the portal application.
"""
from __future__ import annotations

# Field limits
NAME_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 6
AADHAR_NAME_MAX_LENGTH = 255
AADHAR_NUMBER_LENGTH = 12
PHONE_MIN_LENGTH = 10
PHONE_MAX_LENGTH = 15
ADDRESS_MAX_LENGTH = 500

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72

# Front-end paths the gate and login redirect to
LOGIN_PATH = "/login"
KYC_PATH = "/kyc"
SURVEYOR_HOME = "/surveyor"
ADMIN_HOME = "/admin"
MANAGER_HOME = "/manager"

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
