"""
File access module for local directory scanning and file relocation.
"""
