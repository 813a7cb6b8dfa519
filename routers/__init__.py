"""Routers package for champion reviews API endpoints"""
from . import reviews

__all__ = [
	"reviews",
]
