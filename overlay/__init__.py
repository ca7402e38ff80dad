"""
Lock overlay process: full-screen break windows driven by the control process.
"""
