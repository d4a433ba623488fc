"""Timer engine, session state machine, statistics and cycling."""
