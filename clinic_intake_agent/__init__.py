"""
Clinic Intake Agent - WhatsApp intake assistant for EviDenS Clinic.
"""

__version__ = "1.0.0"
