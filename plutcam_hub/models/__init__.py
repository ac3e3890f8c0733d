"""
Data models for PlutCam Hub.
"""
