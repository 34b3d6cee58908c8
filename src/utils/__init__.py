"""
Rental SMS Reminder Utilities
=============================

Shared helper modules for the scheduled pickup/return reminder job:

- logger.py          → structured JSON logging
- secrets.py         → AWS Secrets Manager integration
- phone.py           → US-centric phone normalization
- adalo_client.py    → Adalo collections (Orders, Users) record store
- twilio_client.py   → Twilio client builder and SMS sender

All functions in this package are stateless and safe to reuse across warm
AWS Lambda invocations.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
