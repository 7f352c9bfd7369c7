"""Identity domain: users, credentials, profiles and stats."""
