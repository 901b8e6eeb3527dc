# Scheduling core. Works on plain dataclasses, never on the database session.
