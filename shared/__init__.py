"""
Code shared by the control process and the lock overlay process.
"""
