"""
The CLA: a GitHub App that enforces Contributor License Agreements on pull requests.
"""

__version__ = "0.1.0"
