"""
Accounts module: signup and password login.

- Email is unique and compared lower-cased
- Passwords are stored as bcrypt hashes only
- Login failures are indistinguishable to the caller
"""
