# Firebase phone auth
# This module uses Firebase Authentication for identity - no passwords are stored.
# The client signs in with phone OTP and sends the Firebase ID token:
# - register-or-login verifies the token and creates/updates the user_profiles row
# - every other route verifies the bearer ID token and maps firebase_uid -> user_profiles

"""
Identity claims consumed from a verified Firebase ID token:
- uid           -> user_profiles.firebase_uid
- phone_number  -> user_profiles.phone_number
- name          -> default username when the client sends none

See app/modules/users/models.py for the user_profiles table.
"""
