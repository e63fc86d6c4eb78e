"""
clinicbook - appointment scheduling core for a single-provider clinic.
"""

__version__ = "0.1.0"
