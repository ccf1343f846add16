"""
Campus Events client: API services, shared registration state, and view controllers.
"""

__version__ = "1.0.0"
