"""Repaint a DPMS-corrupted lock screen by bouncing virtual terminals"""

__version__ = "0.1.0"
