"""Backend test suite"""
