"""Eduprima — access control and tutor status backend.

The service layer behind the Eduprima tutoring dashboard: who is signed
in, which dashboard areas they may reach, and the per-tutor status
records the tutor database team maintains.
"""

__version__ = "0.1.0"
