"""JEE Mentors Portal client: session bootstrap, route gating and admin console."""

__version__ = "1.0.0"
