"""
Validators package
------------------
Checks attached to a browser session and run on every poll attempt.
"""

from .validator import FunctionValidator, Handler, Validator, ValidatorRegistry

__all__ = [
    "FunctionValidator",
    "Handler",
    "Validator",
    "ValidatorRegistry",
]
