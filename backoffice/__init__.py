"""Admin back-office: role-based authorization gate and audit trail"""

__version__ = "0.1.0"
