"""
KYC module: one-time identity verification for Surveyor users.

Hard constraints:
- At most one record per user (unique on user_id); no update or delete
- Only SURVEYOR accounts may submit
- The Aadhar number is stored but never returned
"""
