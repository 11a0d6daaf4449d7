"""Paper Intake - registration service for paper form submissions"""

__version__ = "1.0.0"
