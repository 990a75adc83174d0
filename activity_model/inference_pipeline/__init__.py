"""
Inference pipeline for the activity classifier.
"""
