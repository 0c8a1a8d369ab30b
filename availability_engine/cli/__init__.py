"""
Developer console for the availability engine.
"""
