"""
clinic_intake
=============
Patient intake backend: form templates, submissions and priority triage.
"""

__version__ = "1.0.0"
