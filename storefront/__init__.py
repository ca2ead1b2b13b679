"""
                Sandrine Beauty Storefront

Single-product Arabic storefront backend: landing-page order form,
WhatsApp ordering link and an admin orders table over a hosted
data store with a change feed.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
