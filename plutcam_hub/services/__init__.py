"""
Storage and relay services for PlutCam Hub.
"""
