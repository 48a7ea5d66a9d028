"""
Command-line front end for the Speedrun E2E harness.
"""
