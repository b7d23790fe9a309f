"""Care tracker: goal tracking and conditional questionnaire engine"""

__version__ = "1.0.0"
