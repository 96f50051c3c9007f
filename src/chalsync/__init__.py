"""Declarative controller for CTFd challenges."""

__version__ = "0.1.0"
