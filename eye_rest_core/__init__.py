"""
Entry points for the Eye Rest control and overlay processes.
"""
