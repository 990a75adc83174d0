"""
Weight Lifting Exercise quality classifier and report.
"""
