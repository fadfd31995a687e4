"""
Routes API du bridge.
"""
