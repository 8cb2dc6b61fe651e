"""
Tracker proxy: TCP listener for HQ-style GPS/GSM tracker devices
"""
__version__ = "0.1.0"
