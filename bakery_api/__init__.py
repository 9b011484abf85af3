"""
                Bakery Ordering Platform

Async backend for a small bakery/restaurant: menu and cart checkout,
OTP-gated customer signup, and an admin kitchen board with sales
analytics.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
