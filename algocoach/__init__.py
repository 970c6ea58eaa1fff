"""
algocoach - Algorithm Practice Coach

Scripted, trigger-driven coaching for algorithm problems. Each problem ships a
guidance script that decides what to say as you work through it.
"""

__version__ = "0.1.0"
