"""
BWLaunch Test Suite
"""
