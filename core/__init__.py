"""
Control process: rest scheduling, screen filter and overlay coordination.
"""
