"""
mysh - a line-oriented command interpreter with pipes, redirection,
background commands and numbered history.
"""

__version__ = "0.1.0"
