from sqlbind.utils import logging

__all__ = ("logging",)
