"""
GUI-Module für den BugGrabber Viewer
"""
